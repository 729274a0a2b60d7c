from .dispatcher import (
    HttpPrintDispatcher,
    NullPrintDispatcher,
    PrintDispatcher,
    PrintJob,
    PrintReceipt,
    build_print_dispatcher,
)

__all__ = [
    "HttpPrintDispatcher",
    "NullPrintDispatcher",
    "PrintDispatcher",
    "PrintJob",
    "PrintReceipt",
    "build_print_dispatcher",
]
