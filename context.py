import logging
import time

from sqlalchemy.orm import sessionmaker

from cache import PageCache, create_redis_client
from counter import CounterService
from database import CounterStore, create_db_engine, create_tables_with_retry, seed_demo_users

logger = logging.getLogger(__name__)


class AppContext:
    """Ressources partagées par les requêtes : moteur SQL, client Redis et services.

    Construit au démarrage de l'application et fermé à l'arrêt.
    """

    def __init__(self, engine, redis_client):
        self.engine = engine
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        self.redis = redis_client
        self.store = CounterStore(self.SessionLocal)
        self.cache = PageCache(redis_client)
        self.counter = CounterService(self.store, self.cache)
        self.started_at = time.monotonic()

    @classmethod
    def from_settings(cls, settings):
        engine = create_db_engine(settings.database_url)
        redis_client = create_redis_client(settings.redis_url, settings.redis_password)
        return cls(engine, redis_client)

    @property
    def dependencies(self):
        return {"database": self.store, "redis": self.cache}

    def startup(self, with_demo_users=False):
        # La base peut démarrer après l'application : /health le signalera
        try:
            create_tables_with_retry(self.engine)
            self.store.seed()
            if with_demo_users:
                seed_demo_users(self.SessionLocal)
        except Exception as e:
            logger.error("Failed to initialize database: %s", e)

    def close(self):
        try:
            self.redis.close()
        finally:
            self.engine.dispose()
        logger.info("Connections closed.")
