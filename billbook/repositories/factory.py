from billbook.db import Database
from billbook.repositories.base import BillRepository


def get_bill_repository(database: Database) -> BillRepository:
    from billbook.repositories.sqlalchemy import SQLAlchemyBillRepository

    return SQLAlchemyBillRepository(database.connection)
