import logging

from fastapi import Request
from sqlalchemy import create_engine, inspect, select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from tenacity import retry, stop_after_attempt, wait_fixed

from errors import StoreUnavailable
from models import COUNTER_ROW_ID, Base, User, VisitorCount

logger = logging.getLogger(__name__)

# Comptes de démonstration, insérés seulement s'ils n'existent pas
DEMO_USERS = [
    ("admin", "admin@example.com"),
    ("user1", "user1@example.com"),
    ("user2", "user2@example.com"),
]


def create_db_engine(database_url: str, **kwargs):
    return create_engine(database_url, pool_pre_ping=True, **kwargs)


# Fonction pour créer les tables avec un retry et un délai entre les tentatives
@retry(stop=stop_after_attempt(5), wait=wait_fixed(2), reraise=True)
def create_tables_with_retry(engine):
    inspector = inspect(engine)
    missing = [name for name in Base.metadata.tables if not inspector.has_table(name)]
    if missing:
        logger.info("Creating tables: %s", ", ".join(missing))
        Base.metadata.create_all(bind=engine)
        logger.info("Tables created.")
    else:
        logger.info("Tables already exist.")


class CounterStore:
    """Accès au compteur persistant (table visitor_count).

    Toute erreur SQLAlchemy est remontée sous forme de StoreUnavailable.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def seed(self) -> None:
        # Équivalent de INSERT IGNORE : un autre worker a pu insérer la ligne avant nous
        try:
            with self._session_factory() as db:
                if db.get(VisitorCount, COUNTER_ROW_ID) is not None:
                    return
                db.add(VisitorCount(id=COUNTER_ROW_ID, count=0))
                try:
                    db.commit()
                    logger.info("Visitor counter seeded.")
                except IntegrityError:
                    db.rollback()
                    logger.info("Visitor counter already seeded by another worker.")
        except SQLAlchemyError as e:
            raise StoreUnavailable(str(e)) from e

    def read_count(self) -> int:
        try:
            with self._session_factory() as db:
                count = db.scalar(
                    select(VisitorCount.count).where(VisitorCount.id == COUNTER_ROW_ID)
                )
        except SQLAlchemyError as e:
            raise StoreUnavailable(str(e)) from e
        return count or 0

    def increment(self) -> None:
        # count = count + 1 côté serveur : pas de lecture-modification-écriture
        try:
            with self._session_factory.begin() as db:
                db.execute(
                    update(VisitorCount)
                    .where(VisitorCount.id == COUNTER_ROW_ID)
                    .values(count=VisitorCount.count + 1)
                )
        except SQLAlchemyError as e:
            raise StoreUnavailable(str(e)) from e

    def ping(self) -> None:
        try:
            with self._session_factory() as db:
                db.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise StoreUnavailable(str(e)) from e

    def describe(self) -> str:
        try:
            with self._session_factory() as db:
                connection = db.connection()
                dialect = connection.dialect
                version = dialect.server_version_info
        except SQLAlchemyError as e:
            raise StoreUnavailable(str(e)) from e
        if not version:
            return dialect.name
        return f"{dialect.name} {'.'.join(str(part) for part in version)}"


# Dépendance pour obtenir la session de la base de données
def get_db(request: Request):
    db: Session = request.app.state.context.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def seed_demo_users(session_factory: sessionmaker, users=DEMO_USERS) -> int:
    # Équivalent de INSERT IGNORE ligne par ligne : un doublon est ignoré, pas une erreur
    created = 0
    try:
        with session_factory() as db:
            for username, email in users:
                taken = db.scalar(
                    select(User.id).where((User.username == username) | (User.email == email))
                )
                if taken is not None:
                    continue
                db.add(User(username=username, email=email))
                try:
                    db.commit()
                    created += 1
                except IntegrityError:
                    db.rollback()
    except SQLAlchemyError as e:
        raise StoreUnavailable(str(e)) from e
    if created:
        logger.info("Seeded %d demo users.", created)
    return created
