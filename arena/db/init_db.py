from arena.db.session import engine
from arena.db.base import Base

# Import models so SQLAlchemy registers them
from arena.users.models import User, UserToken  # noqa
from arena.sites.models import Website  # noqa
from arena.metrics.models import Metric  # noqa


def init_db():
    Base.metadata.create_all(bind=engine)
