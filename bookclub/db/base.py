"""
Declarative base shared by every ORM model.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    # Models annotate plain Column() attributes rather than Mapped[]
    __allow_unmapped__ = True
