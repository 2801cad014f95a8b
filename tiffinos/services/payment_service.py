"""
Payments and walk-in sales.

Payments are append-only. A payment from a subscribed customer is linked
to their active plan; walk-in sales go in as walk_in payments, optionally
against a walk-in customer looked up by mobile number.
"""
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from tiffinos.api.middleware.error_handler import BadRequestException, NotFoundException
from tiffinos.lib.logging import get_logger
from tiffinos.lib.metrics import get_metrics_collector
from tiffinos.models.customers import Customer, CustomerType
from tiffinos.models.menu_items import MenuItem
from tiffinos.models.payments import Payment, PaymentMode, PaymentStatus, PaymentType
from tiffinos.models.subscriptions import Subscription
from tiffinos.services.billing_engine import Bill
from tiffinos.services.billing_service import BillingService
from tiffinos.services.statement_formatter import sale_receipt


logger = get_logger(__name__)


@dataclass
class PendingAccount:
    customer: Customer
    subscription: Subscription
    bill: Bill

    @property
    def pending_amount(self) -> int:
        return self.bill.pending_signed


@dataclass
class SaleLine:
    menu_item_id: UUID
    quantity: int


@dataclass
class SaleResult:
    payment: Payment
    customer: Optional[Customer]
    receipt_text: str


class PaymentService:
    """Vendor-scoped payment operations."""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.billing = BillingService(db_session)

    def _store(self, payment: Payment) -> Payment:
        self.db.add(payment)
        self.db.commit()
        self.db.refresh(payment)

        get_metrics_collector().increment_payments(
            payment_mode=PaymentMode(payment.payment_mode).value,
            payment_type=PaymentType(payment.payment_type).value,
            amount=payment.amount if payment.status != PaymentStatus.FAILED else 0,
        )
        logger.info(
            "Payment recorded",
            extra={
                "vendor_id": str(payment.vendor_id),
                "payment_id": str(payment.id),
                "customer_id": str(payment.customer_id) if payment.customer_id else None,
                "amount": payment.amount,
                "status": PaymentStatus(payment.status).value,
            },
        )
        return payment

    def record(
        self,
        vendor_id: UUID,
        customer_id: UUID,
        amount: int,
        payment_date: date,
        payment_type: PaymentType = PaymentType.PARTIAL,
        payment_mode: PaymentMode = PaymentMode.CASH,
        status: PaymentStatus = PaymentStatus.COMPLETED,
        notes: Optional[str] = None,
    ) -> Payment:
        if amount <= 0:
            raise BadRequestException("Payment amount must be positive", details={"amount": amount})

        customer = self.db.get(Customer, customer_id)
        if customer is None or customer.vendor_id != vendor_id or not customer.is_active:
            raise NotFoundException("Customer", str(customer_id))

        ledger = self.billing.load_ledger(vendor_id, customer.id)
        active = ledger.active_subscription

        return self._store(Payment(
            vendor_id=vendor_id,
            customer_id=customer.id,
            subscription_id=active.id if active else None,
            amount=amount,
            payment_type=payment_type,
            payment_mode=payment_mode,
            payment_date=payment_date,
            status=status,
            notes=notes,
        ))

    def pending_payments(self, vendor_id: UUID) -> list[PendingAccount]:
        """Customers on an active plan who still owe money, largest balance first."""
        customers = {
            c.id: c
            for c in self.db.execute(
                select(Customer).where(
                    Customer.vendor_id == vendor_id,
                    Customer.is_active == True,  # noqa: E712
                )
            ).scalars()
        }
        if not customers:
            return []

        accounts = []
        for customer_id, ledger in self.billing.load_ledgers(vendor_id, list(customers)).items():
            active = ledger.active_subscription
            if active is None:
                continue
            customer = customers[customer_id]
            bill = self.billing.bill_for(vendor_id, customer, ledger)
            if bill.pending_signed > 0:
                accounts.append(PendingAccount(customer=customer, subscription=active, bill=bill))

        accounts.sort(key=lambda a: a.pending_amount, reverse=True)
        return accounts

    def history(
        self,
        vendor_id: UUID,
        customer_id: Optional[UUID] = None,
        limit: Optional[int] = None,
    ) -> list[Payment]:
        """All payments, newest first."""
        stmt = select(Payment).where(Payment.vendor_id == vendor_id)
        if customer_id is not None:
            stmt = stmt.where(Payment.customer_id == customer_id)
        stmt = stmt.order_by(Payment.payment_date.desc(), Payment.created_at.desc())
        if limit:
            stmt = stmt.limit(limit)
        return list(self.db.execute(stmt).scalars().all())

    def quick_sale(
        self,
        vendor_id: UUID,
        lines: Sequence[SaleLine],
        sale_date: date,
        payment_mode: PaymentMode = PaymentMode.CASH,
        customer_mobile: Optional[str] = None,
        customer_name: Optional[str] = None,
    ) -> SaleResult:
        """
        Ring up menu items at their walk-in price.

        With a mobile number the sale is attached to the vendor's customer
        with that number, creating a walk_in customer when there is none.
        """
        if not lines:
            raise BadRequestException("A sale needs at least one item")

        ids = [line.menu_item_id for line in lines]
        items = {
            item.id: item
            for item in self.db.execute(
                select(MenuItem).where(
                    MenuItem.vendor_id == vendor_id,
                    MenuItem.is_active == True,  # noqa: E712
                    MenuItem.id.in_(ids),
                )
            ).scalars()
        }

        receipt_items = []
        for line in lines:
            item = items.get(line.menu_item_id)
            if item is None:
                raise NotFoundException("Menu item", str(line.menu_item_id))
            if line.quantity <= 0:
                raise BadRequestException("Quantity must be positive", details={"menu_item_id": str(item.id)})
            receipt_items.append((item.item_name, line.quantity, item.walk_in_price))

        total = sum(quantity * price for _, quantity, price in receipt_items)
        if total <= 0:
            raise BadRequestException("Sale total must be positive", details={"total": total})

        customer = None
        if customer_mobile:
            customer = self._walk_in_customer(vendor_id, customer_mobile, customer_name)

        payment = self._store(Payment(
            vendor_id=vendor_id,
            customer_id=customer.id if customer else None,
            amount=total,
            payment_type=PaymentType.WALK_IN,
            payment_mode=payment_mode,
            payment_date=sale_date,
            status=PaymentStatus.COMPLETED,
            notes="Walk-in: " + ", ".join(f"{name} x{qty}" for name, qty, _ in receipt_items),
        ))
        return SaleResult(payment=payment, customer=customer, receipt_text=sale_receipt(receipt_items))

    def _walk_in_customer(self, vendor_id: UUID, mobile_number: str, name: Optional[str]) -> Customer:
        customer = self.db.execute(
            select(Customer).where(
                Customer.vendor_id == vendor_id,
                Customer.mobile_number == mobile_number,
                Customer.is_active == True,  # noqa: E712
            )
        ).scalars().first()
        if customer is not None:
            return customer

        customer = Customer(
            vendor_id=vendor_id,
            full_name=name or "Walk-in Customer",
            mobile_number=mobile_number,
            whatsapp_number=mobile_number,
            customer_type=CustomerType.WALK_IN,
        )
        self.db.add(customer)
        self.db.flush()
        get_metrics_collector().increment_onboarded(CustomerType.WALK_IN.value)
        return customer
