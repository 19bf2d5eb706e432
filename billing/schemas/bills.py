from decimal import Decimal
from typing import List, Optional
from pydantic import AliasChoices, Field
from billing.schemas import CamelModel


class BillLineRequest(CamelModel):
    item_id: str
    quantity: int
    unit_price: Optional[Decimal] = None


class BillRequest(CamelModel):
    customer: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("customer", "customer_name", "customerName"),
    )
    items: List[BillLineRequest] = Field(default_factory=list)
