import asyncio
import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Awaitable, Callable, Optional

from warehouse.clients.products_client import ProductsClient
from warehouse.exceptions import (
    ConflictError,
    EngineBusyError,
    InvalidTransitionError,
    InventoryError,
    TransportError,
    ValidationError,
)
from warehouse.schemas.product import ProductCreate, ProductId, ProductRecord
from warehouse.schemas.stock_in import (
    FormUpdate,
    ProductForm,
    StockInPhase,
    StockInResult,
    StockInState,
)
from warehouse.services.inventory_cache import InventoryCache
from warehouse.services.notifications import Notifier

logger = logging.getLogger(__name__)

# Answers a yes/no prompt shown to the user.
Confirm = Callable[[str], Awaitable[bool]]


def answer(value: bool) -> Confirm:
    """Build a prompt callback that always gives the same answer."""
    async def confirm(message: str) -> bool:
        logger.info(f"Prompt {message!r} answered {'yes' if value else 'no'}")
        return value
    return confirm


class ReconciliationEngine:
    """
    Drives the stock-in interaction and decides every write.

    STOCK RECONCILIATION RULES:
    ===========================
    A submitted quantity is always a delta. At commit time the product
    barcode is looked up in the inventory cache:

    1. A persisted record uses the barcode -> PUT that record with
       stock = persisted stock + quantity. Its other fields come from the
       persisted record, overlaid with the form fields the user unlocked
       and changed.
    2. No record uses the barcode -> POST a new record with
       stock = quantity.

    Before either write the form is validated locally: barcode and name must
    be non-blank, quantity must be positive, and the barcode must not belong
    to a different record.

    STATE:
    ======
    The engine owns a single immutable StockInState value and replaces it
    on every transition. One operation runs at a time; a second one started
    while the first awaits the network is rejected with EngineBusyError.
    Any failure restores the state held before the operation started.
    """

    CREATE_PROMPT = "No product found for barcode {barcode}. Create a new product?"
    DELETE_PROMPT = "Delete this product?"

    def __init__(
        self,
        client: ProductsClient,
        cache: InventoryCache,
        notifier: Notifier,
        refresh_before_commit: bool = False,
    ):
        self.client = client
        self.cache = cache
        self.notifier = notifier
        self.refresh_before_commit = refresh_before_commit
        self._state = StockInState()
        self._lock = asyncio.Lock()

    @property
    def state(self) -> StockInState:
        return self._state

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    # ------------------------------------------------------------------
    # Scan-driven flow
    # ------------------------------------------------------------------

    async def scan(self, barcode: str, confirm: Confirm) -> StockInResult:
        """
        Resolve a scanned barcode against the inventory cache.

        A match (product or box barcode) is loaded read-only with quantity 0.
        Otherwise the user is asked whether to create a new product; on yes
        the form is opened for a new product with the barcode prefilled, on
        no the engine goes back to idle without any network call.

        Raises:
            ValidationError: if the barcode is blank
            EngineBusyError: if another operation is in flight
        """
        async with self._operation("Scan"):
            code = (barcode or "").strip()
            if not code:
                raise ValidationError("Barcode is required")

            self._transition(phase=StockInPhase.RESOLVING)
            found = self.cache.find_by_barcode(code)
            if found:
                self._load(found)
                logger.info(f"Barcode {code} resolved to product {found.id}")
                return self._result(product=found)

            accepted = await confirm(self.CREATE_PROMPT.format(barcode=code))
            if not accepted:
                self._state = StockInState()
                return self._result(message="Product creation cancelled")

            self._state = StockInState(
                phase=StockInPhase.CREATING_NEW,
                form=ProductForm(product_barcode=code),
                editable=True,
            )
            return self._result()

    def edit(self, product_id: ProductId) -> StockInResult:
        """Load a listed product straight into the form, bypassing the scan."""
        with self._guard():
            record = self.cache.get(product_id)
            if record is None:
                raise ValidationError(f"Product {product_id} not found")
            self._load(record)
            return self._result(product=record)

    def unlock(self) -> StockInResult:
        """Allow edits to the fields of an existing product."""
        with self._guard():
            self._require_phase("unlock", StockInPhase.EDITING_EXISTING)
            self._transition(editable=True)
            return self._result()

    def update_form(self, update: FormUpdate) -> StockInResult:
        """Apply field edits and/or a new quantity to the working form."""
        with self._guard():
            self._require_phase(
                "edit the form", StockInPhase.EDITING_EXISTING, StockInPhase.CREATING_NEW
            )
            changes = update.field_changes()
            if changes and not self._state.editable:
                raise ValidationError("Product fields are locked; unlock them to edit")

            new_values = {}
            if changes:
                new_values["form"] = self._state.form.model_copy(update=changes)
            if update.quantity is not None:
                new_values["quantity"] = update.quantity
            self._transition(**new_values)
            return self._result()

    def reset(self) -> StockInResult:
        with self._guard():
            self._state = StockInState()
            return self._result()

    async def submit(self) -> StockInResult:
        """
        Validate the working form and commit it as a create or an increment.

        Returns:
            The idle state, the success message and the written record

        Raises:
            InvalidTransitionError: if no form is open
            ValidationError: blank barcode/name or non-positive quantity
            ConflictError: barcode used by a different record
            TransportError: the write failed (nothing is changed)
        """
        async with self._operation():
            self._require_phase(
                "submit", StockInPhase.EDITING_EXISTING, StockInPhase.CREATING_NEW
            )
            pending = self._state
            self._transition(phase=StockInPhase.VALIDATING)
            await self._refresh_for_commit()

            barcode, name = self._validate_form(pending.form)
            if pending.quantity <= 0:
                raise ValidationError("Quantity must be greater than 0")
            self._check_duplicate(barcode, pending.form.id)

            target = self.cache.find_by_product_barcode(barcode)
            if target is None and pending.form.id is not None:
                # The product barcode itself was edited to an unused value.
                target = self._persisted(pending.form.id)

            self._transition(phase=StockInPhase.COMMITTING)
            if target is not None:
                new_stock = target.stock + pending.quantity
                record = self._apply_form(target, pending).model_copy(
                    update={"stock": new_stock}
                )
                saved = await self.client.update_product(record)
                message = f"Stock updated for {record.name}, current stock: {new_stock}"
                logger.info(
                    f"Incremented product {target.id} by {pending.quantity} "
                    f"({target.stock} -> {new_stock})"
                )
            else:
                form = pending.form
                draft = ProductCreate(
                    box_barcode=form.box_barcode.strip(),
                    product_barcode=barcode,
                    name=name,
                    spec=form.spec,
                    stock=pending.quantity,
                )
                saved = await self.client.create_product(draft)
                record = saved or ProductRecord(**draft.model_dump())
                message = f"Product {name} created with stock {pending.quantity}"
                logger.info(f"Created product with barcode {barcode}")

            return await self._finish(message, saved or record)

    async def save_details(self) -> StockInResult:
        """
        Persist edits to an existing product's fields without touching stock.

        Raises:
            InvalidTransitionError: unless an unlocked existing product is open
            ValidationError: blank barcode/name, or a pending quantity
            ConflictError: barcode used by a different record
            TransportError: the write failed
        """
        async with self._operation():
            self._require_phase("save product details", StockInPhase.EDITING_EXISTING)
            pending = self._state
            if not pending.editable:
                raise InvalidTransitionError("Unlock the product fields before saving them")
            if pending.quantity != 0:
                raise ValidationError("A pending quantity must be submitted as a stock-in")

            self._transition(phase=StockInPhase.VALIDATING)
            await self._refresh_for_commit()
            barcode, _ = self._validate_form(pending.form)
            self._check_duplicate(barcode, pending.form.id)
            target = self._persisted(pending.form.id)

            self._transition(phase=StockInPhase.COMMITTING)
            record = self._apply_form(target, pending)
            saved = await self.client.update_product(record)
            logger.info(f"Updated details of product {target.id}")
            return await self._finish(f"Product {record.name} saved", saved or record)

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    async def delete(self, product_id: ProductId, confirm: Confirm) -> bool:
        """
        Delete a product after the user confirms.

        Returns:
            True if deleted, False if the user declined

        Raises:
            TransportError: the delete failed; the cache is not refreshed
        """
        async with self._operation("Delete"):
            if not await confirm(self.DELETE_PROMPT):
                return False

            await self.client.delete_product(product_id)
            form_id = self._state.form.id
            if form_id is not None and str(form_id) == str(product_id):
                self._state = StockInState()
            self.notifier.success("Product deleted")
            await self.cache.refresh()
            return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _operation(self, action: str = "Save"):
        if self._lock.locked():
            raise EngineBusyError("Another stock-in operation is in progress")
        async with self._lock:
            with self._restoring(action):
                yield

    @contextmanager
    def _guard(self):
        if self._lock.locked():
            raise EngineBusyError("Another stock-in operation is in progress")
        with self._restoring():
            yield

    @contextmanager
    def _restoring(self, action: str = "Save"):
        previous = self._state
        try:
            yield
        except BaseException as e:
            self._state = previous
            if isinstance(e, InventoryError):
                self._report(e, action)
            raise

    def _report(self, error: InventoryError, action: str) -> None:
        if isinstance(error, TransportError):
            self.notifier.error(f"{action} failed: {error}")
        else:
            self.notifier.warning(str(error))

    def _transition(self, **changes) -> None:
        self._state = self._state.model_copy(update=changes)

    def _load(self, record: ProductRecord) -> None:
        self._state = StockInState(
            phase=StockInPhase.EDITING_EXISTING,
            form=ProductForm.from_record(record),
            quantity=0,
            editable=False,
            loaded=record,
        )

    def _require_phase(self, action: str, *phases: StockInPhase) -> None:
        if self._state.phase not in phases:
            raise InvalidTransitionError(
                f"Cannot {action} while {self._state.phase.value.replace('_', ' ')}"
            )

    def _result(self, message: Optional[str] = None, product: ProductRecord = None) -> StockInResult:
        return StockInResult(state=self._state, message=message, product=product)

    async def _refresh_for_commit(self) -> None:
        if self.refresh_before_commit and not await self.cache.refresh(notify=False):
            raise TransportError("Could not verify the product list before saving")

    @staticmethod
    def _validate_form(form: ProductForm):
        barcode = form.product_barcode.strip()
        name = form.name.strip()
        if not barcode:
            raise ValidationError("Product barcode is required")
        if not name:
            raise ValidationError("Product name is required")
        return barcode, name

    def _check_duplicate(self, barcode: str, product_id: Optional[ProductId]) -> None:
        duplicate = self.cache.find_duplicate_barcode(barcode, product_id)
        if duplicate is not None:
            raise ConflictError(
                f"Product barcode {barcode} is already used by {duplicate.name}"
            )

    def _persisted(self, product_id: ProductId) -> ProductRecord:
        record = self.cache.get(product_id)
        if record is None:
            raise ConflictError("This product no longer exists; scan it again")
        return record

    @staticmethod
    def _apply_form(record: ProductRecord, state: StockInState) -> ProductRecord:
        """Overlay the fields the user unlocked and changed onto the persisted record."""
        if not state.editable:
            return record
        form = state.form
        loaded = ProductForm.from_record(state.loaded) if state.loaded else ProductForm()
        changes = {}
        for field in ("box_barcode", "product_barcode", "name", "spec"):
            value = getattr(form, field)
            if value != getattr(loaded, field):
                changes[field] = value if field == "spec" else value.strip()
        return record.model_copy(update=changes) if changes else record

    async def _finish(self, message: str, product: ProductRecord) -> StockInResult:
        self._state = StockInState()
        self.notifier.success(message)
        await self.cache.refresh()
        return self._result(message=message, product=product)
