class StoreUnavailable(Exception):
    """La base de données est injoignable ou la requête a échoué."""


class CacheUnavailable(Exception):
    """Redis est injoignable ou la commande a échoué."""
