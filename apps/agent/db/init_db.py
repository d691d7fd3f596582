from __future__ import annotations

from typing import Optional

from sqlalchemy.engine import Engine

from .engine import make_engine
from .models import Base


def create_tables(engine: Optional[Engine] = None) -> None:
    Base.metadata.create_all(bind=engine or make_engine())


def main():
    create_tables()
    print("DB initialized (tables created).")


if __name__ == "__main__":
    main()
