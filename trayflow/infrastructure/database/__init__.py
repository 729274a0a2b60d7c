from .unit_of_work import (
    SqlModelUnitOfWork,
    UnitOfWorkManager,
    configure_unit_of_work,
    get_unit_of_work_manager,
)

__all__ = [
    "SqlModelUnitOfWork",
    "UnitOfWorkManager",
    "configure_unit_of_work",
    "get_unit_of_work_manager",
]
