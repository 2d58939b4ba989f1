"""Database base class and model imports."""
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import all models here for Alembic to detect them
from elections.db.models.election import Election  # noqa: F401, E402
from elections.db.models.question import Question  # noqa: F401, E402
from elections.db.models.answer import Answer  # noqa: F401, E402
from elections.db.models.voter import Voter  # noqa: F401, E402
from elections.db.models.vote import Vote  # noqa: F401, E402
