"""
bloghouse command line.

Usage:
    bloghouse login --token TOKEN
    bloghouse vps-setup --host 203.0.113.5 [--dashboard]
    bloghouse blog-create --host 203.0.113.5 --domain example.com
    bloghouse sites list
"""

import argparse
import asyncio
import getpass
import json
import logging
import signal
from typing import Any, Awaitable, Optional

from bloghouse.auth import AuthError, TokenStore, load_session_context
from bloghouse.config import Config, ConfigManager, config_manager
from bloghouse.context import AppContext
from bloghouse.flows import BlogCreateFlow, ProvisioningFlow, SimpleVpsSetupFlow, VpsSetupFlow
from bloghouse.forms import BlogCreateForm, SimpleVpsForm, VpsCredentials, ProvisioningForm
from bloghouse.notifier import Toast
from bloghouse.progress.server import ProgressServer
from bloghouse.progress.session import ProvisioningSession, SessionStatus
from bloghouse.progress.terminal import render_progress_bar, render_status_banner
from bloghouse.resources import notifications, vps, wordpress
from bloghouse.transport import ProvisioningTransport, TransportError

logger = logging.getLogger(__name__)

YES_ANSWERS = {"y", "yes", "s", "sim"}


class TerminalPrinter:
    """Prints new log lines and progress changes of a session as they happen."""

    def __init__(self, locale: str):
        self.locale = locale
        self._session_id: Optional[str] = None
        self._printed = 0
        self._progress = -1

    def __call__(self, session: ProvisioningSession):
        if session.session_id != self._session_id:
            self._session_id = session.session_id
            self._printed = 0
            self._progress = -1

        for line in session.lines[self._printed:]:
            print(line)
        self._printed = len(session.output_log)

        if session.is_active and session.progress_percent != self._progress:
            self._progress = session.progress_percent
            print(render_progress_bar(session.progress_percent))

    def summary(self, session: ProvisioningSession):
        for line in render_status_banner(session, self.locale):
            print(line)


def print_toast(toast: Toast):
    print(f"[{toast.level.value}] {toast.message}")


def print_json(data: Any):
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


async def ask_confirmation(message: str) -> bool:
    answer = await asyncio.to_thread(input, f"{message} [y/N] ")
    return answer.strip().lower() in YES_ANSWERS


async def _wait_or_interrupt(awaitable: Awaitable, interrupted: asyncio.Event) -> bool:
    """True when awaitable finished first, False on Ctrl-C."""
    main = asyncio.ensure_future(awaitable)
    stop = asyncio.ensure_future(interrupted.wait())
    done, pending = await asyncio.wait({main, stop}, return_when=asyncio.FIRST_COMPLETED)
    for task in pending:
        task.cancel()
    return main in done


def _install_interrupt(interrupted: asyncio.Event) -> bool:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, interrupted.set)
    except (NotImplementedError, RuntimeError):
        # Signal handlers are unavailable on some platforms
        return False
    return True


async def run_flow(
    flow: ProvisioningFlow,
    form: ProvisioningForm,
    config: Config,
    dashboard: bool = False,
) -> Optional[ProvisioningSession]:
    """
    Open flow, submit form and follow the session until the flow closes.

    Ctrl-C asks for confirmation before abandoning a running session.
    Returns the terminal session, or None when nothing finished.
    """
    printer = TerminalPrinter(flow.ctx.locale)
    flow.on_update(printer)

    await flow.open()
    server = None
    interrupted = asyncio.Event()
    has_handler = _install_interrupt(interrupted)
    try:
        if dashboard:
            server = ProgressServer(
                flow.tracker,
                port=config.dashboard.port,
                host=config.dashboard.host,
                auto_open_browser=config.dashboard.auto_open_browser,
                shutdown_delay=config.dashboard.shutdown_delay,
            )
            await server.start()

        if not await flow.submit(form):
            return flow.last_result

        # Auto-close may already have swapped in a fresh idle session
        while flow.is_open and flow.last_result is None:
            if await _wait_or_interrupt(flow.wait(), interrupted):
                break
            interrupted.clear()
            logger.info("Interrupted while provisioning is running")
            if await flow.close(confirm=ask_confirmation):
                return None

        result = flow.last_result
        if result is not None:
            printer.summary(result)
            if result.status == SessionStatus.COMPLETE:
                await flow.wait_closed()
        return result
    finally:
        if has_handler:
            asyncio.get_running_loop().remove_signal_handler(signal.SIGINT)
        if flow.is_open:
            await flow.close(confirm=lambda message: True)
        if server is not None:
            await server.stop()


def _prompt_password(value: Optional[str], label: str = "Password") -> str:
    return value if value else getpass.getpass(f"{label}: ")


def _make_transport(config: Config) -> ProvisioningTransport:
    return ProvisioningTransport(config.server.resolved_socket_url)


def _make_context(manager: ConfigManager, user_email: Optional[str] = None) -> AppContext:
    session = load_session_context(manager, user_email=user_email)
    ctx = AppContext.from_config(manager, session)
    ctx.notifier.on_toast(print_toast)
    return ctx


async def cmd_vps_setup(args: argparse.Namespace, manager: ConfigManager) -> int:
    config = manager.load()
    async with _make_context(manager, user_email=args.email) as ctx:
        transport = _make_transport(config)
        delay = config.provisioning.vps_auto_close_delay
        username = args.username or config.provisioning.default_username
        port = args.port or config.provisioning.default_port

        if args.full:
            flow = VpsSetupFlow(ctx, transport, auto_close_delay=delay)
            if args.private_key:
                with open(args.private_key, encoding="utf-8") as f:
                    form = VpsCredentials(
                        host=args.host, port=port, username=username,
                        private_key=f.read(), auth_method="privateKey",
                    )
            else:
                form = VpsCredentials(
                    host=args.host, port=port, username=username,
                    password=_prompt_password(args.password),
                )
            if args.test_only:
                result = await flow.test_connection(form)
                if result["success"]:
                    print_json(result.get("details"))
                return 0 if result["success"] else 1
        else:
            flow = SimpleVpsSetupFlow(ctx, transport, auto_close_delay=delay)
            form = SimpleVpsForm(
                host=args.host, port=port, username=username,
                password=_prompt_password(args.password),
            )

        result = await run_flow(flow, form, config, dashboard=args.dashboard or config.dashboard.enabled)
        return 0 if result is not None and result.status == SessionStatus.COMPLETE else 1


async def cmd_blog_create(args: argparse.Namespace, manager: ConfigManager) -> int:
    config = manager.load()
    async with _make_context(manager) as ctx:
        flow = BlogCreateFlow(
            ctx,
            _make_transport(config),
            auto_close_delay=config.provisioning.blog_auto_close_delay,
        )
        form = BlogCreateForm(
            host=args.host,
            port=args.port or config.provisioning.default_port,
            username=args.username or config.provisioning.default_username,
            password=_prompt_password(args.password),
            domain=args.domain,
        )
        result = await run_flow(flow, form, config, dashboard=args.dashboard or config.dashboard.enabled)
        if result is None or result.status != SessionStatus.COMPLETE:
            return 1
        if flow.credentials is not None:
            print_json(flow.credentials.model_dump(exclude_none=True))
        return 0


async def cmd_sites(args: argparse.Namespace, manager: ConfigManager) -> int:
    async with _make_context(manager) as ctx:
        if args.action == "list":
            result = await wordpress.list_sites(ctx)
            if result["success"]:
                print_json(result["data"])
        elif args.action == "delete":
            result = await wordpress.delete_site(ctx, args.site_id)
        else:
            result = await wordpress.set_default_site(ctx, args.site_id)
        return 0 if result["success"] else 1


async def cmd_vps_list(args: argparse.Namespace, manager: ConfigManager) -> int:
    async with _make_context(manager) as ctx:
        result = await vps.list_vps_configurations(ctx)
        if result["success"]:
            print_json(result["data"])
        return 0 if result["success"] else 1


async def cmd_notifications(args: argparse.Namespace, manager: ConfigManager) -> int:
    async with _make_context(manager) as ctx:
        result = await notifications.list_notifications(ctx, unread_only=args.unread)
        if result["success"]:
            print_json(result["data"])
        return 0 if result["success"] else 1


def cmd_login(args: argparse.Namespace, manager: ConfigManager) -> int:
    token = args.token or getpass.getpass("Access token: ")
    if not token.strip():
        print("No token given.")
        return 1
    TokenStore(manager.token_path).set(token.strip())
    print(f"Token saved to {manager.token_path}")
    return 0


def cmd_logout(args: argparse.Namespace, manager: ConfigManager) -> int:
    TokenStore(manager.token_path).clear()
    print("Logged out.")
    return 0


def _add_host_arguments(parser: argparse.ArgumentParser):
    parser.add_argument("--host", required=True, help="Server IP or hostname")
    parser.add_argument("--port", type=int, default=None, help="SSH port")
    parser.add_argument("--username", default=None, help="SSH user")
    parser.add_argument("--password", default=None, help="SSH password (prompted when omitted)")
    parser.add_argument("--dashboard", action="store_true", help="Mirror progress in the browser")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bloghouse", description="Blog platform provisioning client")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="Store an access token")
    login.add_argument("--token", default=None)

    sub.add_parser("logout", help="Forget the stored access token")

    vps_setup = sub.add_parser("vps-setup", help="Configure a VPS")
    _add_host_arguments(vps_setup)
    vps_setup.add_argument("--full", action="store_true", help="Step-by-step setup with command output")
    vps_setup.add_argument("--email", default=None, help="Account email (required with --full)")
    vps_setup.add_argument("--private-key", default=None, help="Private key file (with --full)")
    vps_setup.add_argument("--test-only", action="store_true", help="Only test the connection (with --full)")

    blog = sub.add_parser("blog-create", help="Create a WordPress blog on a configured VPS")
    _add_host_arguments(blog)
    blog.add_argument("--domain", required=True)

    sites = sub.add_parser("sites", help="WordPress sites")
    sites_sub = sites.add_subparsers(dest="action", required=True)
    sites_sub.add_parser("list")
    for action in ("delete", "set-default"):
        p = sites_sub.add_parser(action)
        p.add_argument("site_id")

    vps_cmd = sub.add_parser("vps", help="VPS configurations")
    vps_sub = vps_cmd.add_subparsers(dest="action", required=True)
    vps_sub.add_parser("list")

    notif = sub.add_parser("notifications", help="Notifications")
    notif_sub = notif.add_subparsers(dest="action", required=True)
    notif_list = notif_sub.add_parser("list")
    notif_list.add_argument("--unread", action="store_true")

    return parser


ASYNC_COMMANDS = {
    "vps-setup": cmd_vps_setup,
    "blog-create": cmd_blog_create,
    "sites": cmd_sites,
    "vps": cmd_vps_list,
    "notifications": cmd_notifications,
}

SYNC_COMMANDS = {
    "login": cmd_login,
    "logout": cmd_logout,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the bloghouse CLI."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    manager = config_manager
    if args.command in SYNC_COMMANDS:
        return SYNC_COMMANDS[args.command](args, manager)

    try:
        return asyncio.run(ASYNC_COMMANDS[args.command](args, manager))
    except AuthError as e:
        print(f"Not authenticated: {e}. Run `bloghouse login` first.")
        return 1
    except TransportError as e:
        print(str(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
