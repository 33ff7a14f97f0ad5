"""Create the first administrator account.

    python -m carecoord.scripts.create_admin --email admin@example.com \
        --password 'Secret123' --first-name Ada --last-name Admin
"""
import argparse
import logging
import sys

from pydantic import ValidationError as SchemaValidationError

from ..database import Base, SessionLocal, engine
from ..errors import ServiceError
from .. import models  # noqa: F401
from ..models.user import UserRole
from ..schemas.user import UserCreate
from ..services.users import create_user

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Create a CareCoord administrator")
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--first-name", required=True)
    parser.add_argument("--last-name", required=True)
    return parser.parse_args(argv)


def main(argv=None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    args = parse_args(argv)

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        data = UserCreate(
            email=args.email,
            password=args.password,
            role=UserRole.ADMIN,
            first_name=args.first_name,
            last_name=args.last_name,
        )
        user, _ = create_user(db, data)
    except SchemaValidationError as e:
        logger.error("Invalid admin details: %s", e.errors()[0]["msg"])
        return 1
    except ServiceError as e:
        logger.error(e.message)
        return 1
    finally:
        db.close()

    logger.info("Admin %s created with id %s", user.email, user.id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
