from decimal import Decimal
from typing import Optional
from billing.schemas import CamelModel


class ItemRequest(CamelModel):
    item_id: Optional[str] = None
    name: Optional[str] = None
    arabic_name: Optional[str] = None
    buying_price: Optional[Decimal] = None
    selling_price: Optional[Decimal] = None
    purchase_percentage: Optional[Decimal] = None
    sell_percentage: Optional[Decimal] = None
    is_wire_box: bool = False
    unit: Optional[str] = None
