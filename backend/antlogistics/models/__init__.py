from .warehouse import Warehouse
from .commodity import Commodity
from .operator import Operator, OperatorRole, OperatorSession
from .stock import StockRecord

__all__ = [
    'Warehouse',
    'Commodity',
    'Operator', 'OperatorRole', 'OperatorSession',
    'StockRecord',
]
