# src/bookcatalog/core/logging/
# ├─ __init__.py            # public API: setup_logging, operation id helpers
# ├─ builder.py             # make_dict_config(settings) + setup_logging(settings)
# ├─ formatters.py          # JsonFormatter, ColorFormatter
# ├─ filters.py             # OperationIdFilter (+ contextvar helpers)
# └─ handlers.py            # handler config factories (console/file)

from .builder import setup_logging, make_dict_config
from .filters import (
    OperationIdFilter,
    new_operation_id,
    set_operation_id,
    reset_operation_id,
    get_operation_id,
)

__all__ = [
    "setup_logging",
    "make_dict_config",
    "OperationIdFilter",
    "new_operation_id",
    "set_operation_id",
    "reset_operation_id",
    "get_operation_id",
]
