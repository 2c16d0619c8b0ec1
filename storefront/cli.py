"""
Interactive storefront shell.

┌─────────────────────────────────────────────────────────────────────────┐
│  AREA        COMMANDS                           BACKED BY               │
├─────────────────────────────────────────────────────────────────────────┤
│  cart        cart add set inc dec rm clear      CartStore + controls    │
│  orders      orders order place                 OrdersApi + initiator   │
│  checkout    checkout card pay qr confirm ...   CheckoutOrchestrator    │
└─────────────────────────────────────────────────────────────────────────┘

Run: storefront --api-url http://localhost:8080/api --token <jwt>
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from collections.abc import Awaitable, Callable

from combinators import lift as L
from kungfu import Ok, Error

from storefront._types import Lazy
from storefront.cart import CartError, CartLineControls, CartStore
from storefront.checkout import (
    AwaitingMethod,
    CardForm,
    CheckoutOrchestrator,
    Exited,
    InvalidTransition,
    OrderClosed,
    Phase,
    Settled,
    Submitting,
    YapeQrPending,
)
from storefront.config import ClientConfig
from storefront.domain import Cart, CartItem, Order, PaymentMethod
from storefront.orders import OrderInitiator, OrdersApi
from storefront.payments import PaymentsApi
from storefront.session import MemorySessionStore, Session, SessionContext
from storefront.transport import ApiClient


# ═══════════════════════════════════════════════════════════════════════════════
# Help
# ═══════════════════════════════════════════════════════════════════════════════

HELP_TEXT = """
┌─────────────────────────────────────────────────────────────────────────────┐
│                              COMMANDS                                        │
├─────────────────────────────────────────────────────────────────────────────┤
│  cart                       Show the cart                                    │
│  add <game_id> [qty]        Add a game                                       │
│  set <item_id> <qty>        Set a line quantity                              │
│  inc <item_id>              +1 on a line                                     │
│  dec <item_id>              −1 on a line (never below 1)                     │
│  rm <item_id>               Remove a line (asks first)                       │
│  clear                      Empty the cart                                   │
├─────────────────────────────────────────────────────────────────────────────┤
│  orders                     List my orders                                   │
│  order <number>             Show one order                                   │
│  methods                    List payment methods                             │
│  place <card|yape>          Create an order from the cart, open checkout     │
├─────────────────────────────────────────────────────────────────────────────┤
│  checkout <order_id>        Open checkout for an order                       │
│  card                       Pay by card: fill the form                       │
│  pay                        Submit the card                                  │
│  qr                         Pay with Yape: generate a (new) QR               │
│  confirm                    Check whether the QR was paid                    │
│  discard                    Drop the current QR                              │
│  retry                      Back to method selection after a failure         │
│  cancel                     Cancel the order and go back to the cart         │
│  back                       Leave checkout, keep the order                   │
├─────────────────────────────────────────────────────────────────────────────┤
│  login <token>              Use a bearer token                               │
│  help                       Show this help                                   │
│  quit                       Exit                                             │
└─────────────────────────────────────────────────────────────────────────────┘
"""


def print_help() -> None:
    print(HELP_TEXT)


# ═══════════════════════════════════════════════════════════════════════════════
# Notifications
# ═══════════════════════════════════════════════════════════════════════════════


class ConsoleNotifier:
    def success(self, message: str) -> None:
        print(f"  ✓ {message}")

    def error(self, message: str) -> None:
        print(f"  ✗ {message}")

    def info(self, message: str) -> None:
        print(f"  • {message}")


# ═══════════════════════════════════════════════════════════════════════════════
# Display
# ═══════════════════════════════════════════════════════════════════════════════


def print_cart(cart: Cart | None) -> None:
    if cart is None or cart.is_empty:
        print("\n  Cart is empty.")
        return

    print("\n┌──────────────────────────────────────────────────────────┐")
    print("│  CART                                                     │")
    print("├──────────────────────────────────────────────────────────┤")
    for item in cart.items:
        print(f"│  [{item.id:5}] {item.game.title[:28]:28} x{item.quantity:<3} {item.subtotal:>10.2f} │")
    print("├──────────────────────────────────────────────────────────┤")
    print(f"│  {cart.item_count} item(s)                    TOTAL {cart.total:>18.2f} │")
    print("└──────────────────────────────────────────────────────────┘")


def print_order(order: Order) -> None:
    print(f"\n  Order {order.order_number} (id {order.id}): {order.status.value}")
    for item in order.items:
        print(f"    • {item.quantity}x {item.game_title:30} {item.subtotal:>10.2f}")
    print(f"    TOTAL {order.total_amount:.2f}")


def print_phase(phase: Phase) -> None:
    match phase:
        case AwaitingMethod(order=order, selected=None):
            print(f"\n  Paying {order.order_number}: {order.total_amount:.2f}. Choose 'card' or 'qr'.")
        case AwaitingMethod(selected=PaymentMethod.YAPE):
            print("\n  Yape selected. Use 'qr' to generate a code.")
        case CardForm(card=card):
            missing = card.missing_fields()
            if missing:
                print(f"\n  Card form. Missing: {', '.join(missing)}")
            else:
                print("\n  Card form complete. Use 'pay' to submit.")
        case YapeQrPending(qr=qr):
            print(f"""
┌────────────────────────────────────────────────┐
│  YAPE QR                                        │
├────────────────────────────────────────────────┤
│  Code:    {qr.payment_code:37} │
│  Amount:  {qr.amount:<37.2f} │
└────────────────────────────────────────────────┘
""")
            if qr.instructions:
                print(f"  {qr.instructions}")
            print("  Pay in the Yape app, then 'confirm'.")
        case Submitting(method=method):
            print(f"\n  Processing {method.value} payment...")
        case Settled(result=result) if result.is_completed:
            print("\n  Payment completed. Your games are in the library.")
        case Settled(result=result):
            print(f"\n  Payment failed: {result.message or result.status.value}. 'retry' or 'back'.")
        case OrderClosed(order=order):
            print(f"\n  Order {order.order_number} is {order.status.value}. Nothing to pay.")
        case Exited(destination=destination):
            print(f"\n  → {destination.value}")


# ═══════════════════════════════════════════════════════════════════════════════
# Shell
# ═══════════════════════════════════════════════════════════════════════════════


def cart_step(action: Callable[[], Awaitable[Cart | None]]) -> Lazy[Cart | None, Exception]:
    """Lift a raising cart call into a Result."""
    return L.catching_async(action, on_error=lambda e: e)


class Shell:
    def __init__(self, api: ApiClient) -> None:
        self.api = api
        self.notifier = ConsoleNotifier()
        messages = api.config.messages

        self.cart = CartStore(api, self.notifier, messages=messages)
        self.controls = CartLineControls(self.cart)
        self.orders = OrdersApi(api)
        self.payments = PaymentsApi(api)
        self.initiator = OrderInitiator(self.orders, self.cart, self.notifier, messages=messages)
        self.checkout = CheckoutOrchestrator(
            self.orders,
            self.payments,
            api.session,
            self.notifier,
            messages=messages,
            on_change=print_phase,
        )

    # ─── cart ─────────────────────────────────────────────────────────────────

    async def show_cart(self) -> None:
        await self.cart.load_cart()
        print_cart(self.cart.cart)

    async def cart_command(self, action: Callable[[], Awaitable[Cart | None]]) -> None:
        match await cart_step(action):
            case Ok(None):
                print("  • Nothing to do.")
            case Ok(cart):
                print_cart(cart)
            case Error(CartError()):
                pass  # already notified
            case Error(e):
                print(f"  ✗ {e}")

    async def remove(self, item_id: int) -> None:
        async def confirm(item: CartItem) -> bool:
            answer = await ask(f"  Remove {item.game.title}? [y/N] ")
            return answer.lower() in ("y", "yes")

        await self.cart_command(lambda: self.controls.remove(item_id, confirm))

    # ─── orders ───────────────────────────────────────────────────────────────

    async def list_orders(self) -> None:
        match await self.orders.list_mine():
            case Ok(orders) if orders:
                for order in orders:
                    print(f"  [{order.id:5}] {order.order_number:20} {order.status.value:10} {order.total_amount:>10.2f}")
            case Ok(_):
                print("  No orders yet.")
            case Error(e):
                self.notifier.error(e.describe("Could not load orders"))

    async def show_order(self, number: str) -> None:
        match await self.orders.by_number(number):
            case Ok(order):
                print_order(order)
            case Error(e):
                self.notifier.error(e.describe(self.api.config.messages.load_order_failed))

    async def list_methods(self) -> None:
        match await self.payments.methods():
            case Ok(available):
                for method in available.methods:
                    default = " (default)" if method.id == available.default_method else ""
                    print(f"  {method.id:12} {method.name}{default}")
            case Error(e):
                self.notifier.error(e.describe("Could not load payment methods"))

    async def place(self, method: PaymentMethod) -> None:
        match await self.initiator.place(method):
            case Ok(order):
                await self.checkout.open(order.id)
            case Error(_):
                pass

    # ─── checkout ─────────────────────────────────────────────────────────────

    async def fill_card(self) -> None:
        if not isinstance(self.checkout.phase, CardForm):
            self.checkout.select_method(PaymentMethod.CREDIT_CARD)
        self.checkout.fill_card(
            card_number=await ask("  Card number: "),
            card_holder=await ask("  Card holder: "),
            expiry_month=await ask("  Expiry month (MM): "),
            expiry_year=await ask("  Expiry year (YY): "),
            cvv=await ask("  CVV: "),
        )

    async def generate_qr(self) -> None:
        phase = self.checkout.phase
        if isinstance(phase, CardForm) or (isinstance(phase, AwaitingMethod) and phase.selected is None):
            self.checkout.select_method(PaymentMethod.YAPE)
        await self.checkout.generate_qr()


async def ask(prompt: str) -> str:
    """Read a line without blocking background tasks."""
    return (await asyncio.to_thread(input, prompt)).strip()


def parse_method(value: str) -> PaymentMethod:
    match value.lower():
        case "card" | "credit_card":
            return PaymentMethod.CREDIT_CARD
        case "yape" | "qr":
            return PaymentMethod.YAPE
        case _:
            raise ValueError(f"unknown payment method: {value}")


# ═══════════════════════════════════════════════════════════════════════════════
# Main Loop
# ═══════════════════════════════════════════════════════════════════════════════

BANNER = """
╔════════════════════════════════════════════════════════════════════════════╗
║                            STOREFRONT SHELL                                 ║
╠════════════════════════════════════════════════════════════════════════════╣
║  Browse the cart, place orders and pay them by card or Yape QR.            ║
╚════════════════════════════════════════════════════════════════════════════╝
"""


async def dispatch(shell: Shell, cmd: str, args: list[str]) -> None:
    match cmd, args:
        case "help" | "h" | "?", _:
            print_help()

        case "login", [token]:
            await shell.api.session.start(Session(token=token))
            shell.notifier.success("Session started")
            await shell.show_cart()

        case "cart", []:
            await shell.show_cart()

        case "add", [game_id]:
            await shell.cart_command(lambda: shell.cart.add_to_cart(int(game_id)))

        case "add", [game_id, quantity]:
            await shell.cart_command(lambda: shell.cart.add_to_cart(int(game_id), int(quantity)))

        case "set", [item_id, quantity]:
            await shell.cart_command(lambda: shell.cart.update_quantity(int(item_id), int(quantity)))

        case "inc", [item_id]:
            await shell.cart_command(lambda: shell.controls.increment(int(item_id)))

        case "dec", [item_id]:
            await shell.cart_command(lambda: shell.controls.decrement(int(item_id)))

        case "rm", [item_id]:
            await shell.remove(int(item_id))

        case "clear", []:
            await shell.cart_command(shell.cart.clear_cart)

        case "orders", []:
            await shell.list_orders()

        case "order", [number]:
            await shell.show_order(number)

        case "methods", []:
            await shell.list_methods()

        case "place", [method]:
            await shell.place(parse_method(method))

        case "checkout", [order_id]:
            await shell.checkout.open(int(order_id))

        case "card", []:
            await shell.fill_card()

        case "pay", []:
            await shell.checkout.submit_card()

        case "qr", []:
            await shell.generate_qr()

        case "confirm", []:
            await shell.checkout.confirm_qr()

        case "discard", []:
            shell.checkout.discard_qr()

        case "retry", []:
            shell.checkout.retry()

        case "cancel", []:
            shell.checkout.cancel()

        case "back", []:
            shell.checkout.return_to_cart()
            await shell.show_cart()

        case _:
            print(f"  ✗ Unknown command or wrong arguments: {cmd}")
            print("  Type 'help' for available commands.")


async def run_cli(config: ClientConfig) -> None:
    store = MemorySessionStore(Session(token=config.token) if config.token else None)
    session = SessionContext(
        store,
        on_unauthorized=lambda: print("  ✗ Session expired. Use 'login <token>'."),
    )
    await session.restore()

    async with ApiClient(config, session) as api:
        shell = Shell(api)

        print(BANNER)
        print_help()
        if session.is_authenticated:
            await shell.show_cart()

        while True:
            try:
                line = await ask("\n> ")
            except (EOFError, KeyboardInterrupt):
                print("\nBye!")
                break

            if not line:
                continue

            cmd, *args = line.split()
            cmd = cmd.lower()
            if cmd in ("quit", "exit", "q"):
                print("Bye!")
                break

            try:
                await dispatch(shell, cmd, args)
            except InvalidTransition as e:
                print(f"  ✗ {e}")
            except ValueError as e:
                print(f"  ✗ {e}")

        await shell.checkout.drain()


# ═══════════════════════════════════════════════════════════════════════════════
# Entry Point
# ═══════════════════════════════════════════════════════════════════════════════


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Storefront shell")
    parser.add_argument("--api-url", help="API root (default: $STOREFRONT_API_URL or localhost)")
    parser.add_argument("--token", help="Bearer token (default: $STOREFRONT_TOKEN)")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = ClientConfig.from_env()
    if args.api_url:
        config = config.with_base_url(args.api_url)
    if args.token:
        config = config.with_token(args.token)
    if args.timeout is not None:
        config = config.with_timeout(seconds=args.timeout)

    asyncio.run(run_cli(config))


if __name__ == "__main__":
    main()
