import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Sequence

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from services.cart_service.repository import CartRepository
from services.catalog_service.repository import ProductRepository
from shared.errors import (
    BusinessRuleError,
    DomainError,
    EmptyCartError,
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
)
from shared.observability import (
    ecomm_checkout_duration_seconds,
    ecomm_checkout_total,
    ecomm_order_cancellations_total,
    ecomm_order_status_transitions_total,
)
from shared.security import CurrentUser

from .models import Order, OrderItem
from .pricing import compute_totals, effective_unit_price, generate_order_number
from .repository import OrderRepository
from .schemas import OrderCreate, OrderStatusUpdate, PaymentStatusUpdate
from .status import (
    OrderStatus,
    PaymentStatus,
    ensure_order_transition,
    ensure_payment_transition,
)

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderService:

    # --- Checkout ---

    @staticmethod
    async def checkout(
        db: AsyncSession,
        user_id: int,
        data: OrderCreate,
        *,
        shipping_override: Optional[Decimal] = None,
        payment_status: PaymentStatus = PaymentStatus.UNPAID,
        payment_method: Optional[str] = None,
        transaction_id: Optional[str] = None,
        expected_amount: Optional[int] = None,
    ) -> Order:
        """
        Converts the user's cart into an order in a single unit of work:
        stock check, totals, order + items, stock decrement, cart clear.
        Any failure rolls everything back.

        `expected_amount` is the amount already charged, in minor units; the
        order is refused when the cart no longer adds up to it.
        """
        started = time.perf_counter()
        try:
            order = await OrderService._place_order(
                db,
                user_id,
                data,
                shipping_override=shipping_override,
                payment_status=payment_status,
                payment_method=payment_method or data.payment_method,
                transaction_id=transaction_id,
                expected_amount=expected_amount,
            )
            await db.commit()
        except DomainError as exc:
            await db.rollback()
            ecomm_checkout_total.labels(status="failed").inc()
            logger.info("checkout_rejected", user_id=user_id, reason=exc.message)
            raise
        except Exception:
            await db.rollback()
            ecomm_checkout_total.labels(status="failed").inc()
            logger.exception("checkout_failed", user_id=user_id)
            raise

        ecomm_checkout_total.labels(status="success").inc()
        ecomm_checkout_duration_seconds.observe(time.perf_counter() - started)
        logger.info(
            "order_created",
            user_id=user_id,
            order_id=order.id,
            order_number=order.order_number,
            total_amount=str(order.total_amount),
            lines=len(order.items),
        )
        return order

    @staticmethod
    async def _place_order(
        db: AsyncSession,
        user_id: int,
        data: OrderCreate,
        *,
        shipping_override: Optional[Decimal],
        payment_status: PaymentStatus,
        payment_method: Optional[str],
        transaction_id: Optional[str],
        expected_amount: Optional[int] = None,
    ) -> Order:
        # 1. Load cart lines with live product data
        cart_items = await CartRepository.list_for_user(db, user_id)

        # 2. Validate
        if not cart_items:
            raise EmptyCartError()
        for item in cart_items:
            if item.quantity > item.product.stock_quantity:
                raise InsufficientStockError(item.product.name)

        # 3-5. Totals
        totals = compute_totals(
            [(item.unit_price, item.quantity) for item in cart_items],
            shipping_override,
        )
        if expected_amount is not None and totals.amount_in_minor_units != expected_amount:
            raise BusinessRuleError("Payment amount does not match order total")

        # 6-7. Order + item snapshots
        shipping = data.shipping_info
        order = Order(
            order_number=generate_order_number(),
            user_id=user_id,
            subtotal=totals.subtotal,
            tax=totals.tax,
            shipping_cost=totals.shipping_cost,
            total_amount=totals.total_amount,
            status=OrderStatus.PENDING,
            payment_status=payment_status,
            payment_method=payment_method,
            payment_transaction_id=transaction_id,
            shipping_name=shipping.name,
            shipping_address=shipping.address,
            shipping_city=shipping.city,
            shipping_state=shipping.state,
            shipping_zip_code=shipping.zip_code,
            shipping_country=shipping.country,
            shipping_phone=shipping.phone,
            customer_notes=data.customer_notes,
        )
        for item in cart_items:
            unit_price = effective_unit_price(item.product.price, item.product.sale_price)
            order.items.append(OrderItem(
                product_id=item.product_id,
                product_name=item.product.name,
                product_image_url=item.product.image_url,
                quantity=item.quantity,
                unit_price=unit_price,
                total_price=unit_price * item.quantity,
            ))
        await OrderRepository.add_order(db, order)

        # 8. Conditional decrement: zero rows means another checkout took the stock
        for item in cart_items:
            if not await ProductRepository.decrement_stock(db, item.product_id, item.quantity):
                raise InsufficientStockError(item.product.name)

        # 9. Clear cart
        await CartRepository.clear_cart(db, user_id, commit=False)
        return order

    # --- Queries ---

    @staticmethod
    async def list_orders(
        db: AsyncSession, user: CurrentUser, status: Optional[OrderStatus] = None
    ) -> Sequence[Order]:
        owner_id = None if user.is_admin else user.id
        return await OrderRepository.list_orders(db, owner_id, status)

    @staticmethod
    async def get_order(db: AsyncSession, order_id: int) -> Order:
        order = await OrderRepository.get_order(db, order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    @staticmethod
    async def get_order_for(db: AsyncSession, order_id: int, user: CurrentUser) -> Order:
        order = await OrderService.get_order(db, order_id)
        if not user.is_admin and order.user_id != user.id:
            raise PermissionDeniedError()
        return order

    @staticmethod
    async def get_by_transaction_id(db: AsyncSession, transaction_id: str) -> Optional[Order]:
        return await OrderRepository.get_by_transaction_id(db, transaction_id)

    # --- Status transitions ---

    @staticmethod
    async def cancel_order(db: AsyncSession, order_id: int, user: CurrentUser) -> Order:
        order = await OrderService.get_order_for(db, order_id, user)
        if not user.is_admin and order.status != OrderStatus.PENDING:
            raise InvalidTransitionError("Only pending orders can be cancelled")
        return await OrderService._cancel(db, order, actor="admin" if user.is_admin else "owner")

    @staticmethod
    async def _cancel(db: AsyncSession, order: Order, actor: str, admin_notes: Optional[str] = None) -> Order:
        order_id = order.id
        current = OrderStatus(order.status)
        ensure_order_transition(current, OrderStatus.CANCELLED)
        now = _utcnow()
        values = {"updated_at": now}
        if admin_notes is not None:
            values["admin_notes"] = admin_notes
        try:
            # The status flip is conditional, so only one cancellation restores stock
            if not await OrderRepository.transition_status(db, order_id, current, OrderStatus.CANCELLED, **values):
                raise InvalidTransitionError(f"Order is no longer '{current.value}'")
            for item in order.items:
                if not await ProductRepository.restore_stock(db, item.product_id, item.quantity):
                    logger.warning("stock_restore_skipped", order_id=order_id, product_id=item.product_id)
            order.status = OrderStatus.CANCELLED
            for key, value in values.items():
                setattr(order, key, value)
            await db.commit()
        except DomainError as exc:
            await db.rollback()
            logger.info("order_cancel_rejected", order_id=order_id, reason=exc.message)
            raise
        except Exception:
            await db.rollback()
            logger.exception("order_cancel_failed", order_id=order_id)
            raise

        ecomm_order_cancellations_total.labels(actor=actor).inc()
        ecomm_order_status_transitions_total.labels(to_status=OrderStatus.CANCELLED.value).inc()
        logger.info("order_cancelled", order_id=order_id, actor=actor)
        return order

    @staticmethod
    async def update_status(db: AsyncSession, order_id: int, data: OrderStatusUpdate) -> Order:
        order = await OrderService.get_order(db, order_id)
        target = data.status

        if target == OrderStatus.CANCELLED:
            return await OrderService._cancel(db, order, actor="admin", admin_notes=data.admin_notes)

        current = OrderStatus(order.status)
        ensure_order_transition(current, target)
        now = _utcnow()
        values = {"updated_at": now}
        if data.admin_notes is not None:
            values["admin_notes"] = data.admin_notes
        if target == OrderStatus.SHIPPED:
            values["shipped_at"] = now
        elif target == OrderStatus.DELIVERED:
            values["delivered_at"] = now

        if not await OrderRepository.transition_status(db, order_id, current, target, **values):
            await db.rollback()
            raise InvalidTransitionError(f"Order is no longer '{current.value}'")
        order.status = target
        for key, value in values.items():
            setattr(order, key, value)

        await OrderRepository.save(db, order)
        ecomm_order_status_transitions_total.labels(to_status=target.value).inc()
        logger.info("order_status_changed", order_id=order_id, status=target.value)
        return order

    @staticmethod
    async def update_payment_status(db: AsyncSession, order_id: int, data: PaymentStatusUpdate) -> Order:
        order = await OrderService.get_order(db, order_id)
        ensure_payment_transition(order.payment_status, data.payment_status)

        order.payment_status = data.payment_status
        if data.payment_transaction_id is not None:
            order.payment_transaction_id = data.payment_transaction_id
        order.updated_at = _utcnow()

        await OrderRepository.save(db, order)
        logger.info("payment_status_changed", order_id=order.id, payment_status=data.payment_status.value)
        return order

    @staticmethod
    async def mark_paid(db: AsyncSession, transaction_id: str) -> Optional[Order]:
        """Marks the order for a payment intent as paid; unknown or already-paid orders are left alone."""
        order = await OrderRepository.get_by_transaction_id(db, transaction_id)
        if order is None or order.payment_status != PaymentStatus.UNPAID:
            return order
        order.payment_status = PaymentStatus.PAID
        order.updated_at = _utcnow()
        return await OrderRepository.save(db, order)
