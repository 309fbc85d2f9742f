"""
Status Board — Telegram Bot.

Telegram is the board's user interface: the roster view, the employee
profile, and the options page all live behind commands here.

Security-first: unauthorized users are silently ignored.
"""

from __future__ import annotations

import logging
import shlex
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.error import BadRequest
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from statusboard.config import settings
from statusboard.core.resolver import DAY_NAMES
from statusboard.core.roster import RosterUnavailableError
from statusboard.core.validation import ValidationError

if TYPE_CHECKING:
    from statusboard.core.change_feed import ChangeFeed
    from statusboard.core.employee_service import EmployeeService
    from statusboard.core.options_service import OptionsService
    from statusboard.core.roster import RosterService
    from statusboard.data.db import TenantDB
    from statusboard.data.models import (
        Employee,
        Member,
        RecurringStatusRule,
        Roster,
        ScheduledStatusOverride,
    )
    from statusboard.ports.clock_port import ClockPort
    from statusboard.ports.notification_port import NotificationPort
    from statusboard.ports.store_port import StatusStorePort

logger = logging.getLogger(__name__)

Handler = Callable[..., Coroutine[Any, Any, None]]


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def authorized_only(func: Handler) -> Handler:
    """Decorator that silently ignores messages from unauthorized users.

    Does NOT send any response to strangers — the bot must not reveal
    its existence to unauthorized users.
    """

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        if user is None or user.id not in settings.ALLOWED_USER_IDS:
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


def member_only(func: Handler) -> Handler:
    """Authorized + signed in to a tenant. Passes the Member to the handler."""

    @authorized_only
    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        tenants: TenantDB = context.bot_data["tenants"]
        member = tenants.get_member(update.effective_user.id)
        if member is None:
            await update.message.reply_text("Please send /start first.")
            return
        return await func(update, context, member)

    return wrapper


def _session(update: Update, context: ContextTypes.DEFAULT_TYPE):
    from statusboard.adapters.telegram_session import TelegramSession

    return TelegramSession(
        context.bot_data["tenants"], update.effective_user.id, update.effective_chat.id,
    )


def _split_args(context: ContextTypes.DEFAULT_TYPE) -> list[str]:
    """Command arguments, honoring quotes so names may contain spaces."""
    raw = " ".join(context.args or [])
    try:
        return shlex.split(raw)
    except ValueError:
        return list(context.args or [])


async def _reply_failure(update: Update, exc: Exception, action: str) -> None:
    if isinstance(exc, ValidationError):
        await update.message.reply_text(str(exc))
        return
    logger.error("%s error: %s", action, exc)
    await update.message.reply_text("Something went wrong. Please try again.")


def _is_admin_mode(context: ContextTypes.DEFAULT_TYPE) -> bool:
    return bool(context.user_data.get("admin_mode"))


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_roster(roster: Roster, company_name: str = "") -> str:
    """Render the board: banner first, then one line per employee."""
    lines: list[str] = []
    if company_name:
        lines.append(f"🏢 {company_name}")
    if roster.banner:
        lines.append(f"📢 {roster.banner}")
    if lines:
        lines.append("")

    if not roster.employees:
        lines.append("No employees yet. Add one with /add <name>.")
        return "\n".join(lines)

    for e in roster.employees:
        lines.append(f"{e.id}. {e.name} — {e.status}")
    return "\n".join(lines)


def format_profile(
    employee: Employee,
    rules: list[RecurringStatusRule],
    overrides: list[ScheduledStatusOverride],
) -> str:
    lines = [
        f"{employee.name} (#{employee.id})",
        f"Status: {employee.status}",
        f"Phone: {employee.phone or '—'}",
        f"Email: {employee.email or '—'}",
        f"Avatar: {'set' if employee.image_url else '—'}",
        "",
        f"Recurring statuses: {'enabled' if employee.recurring_enabled else 'disabled'}",
    ]
    by_day = {r.day_of_week: r.status_text for r in rules}
    for day, name in enumerate(DAY_NAMES):
        lines.append(f"  {name}: {by_day.get(day, '—')}")

    lines.append("")
    if overrides:
        lines.append("Scheduled statuses:")
        for o in overrides:
            lines.append(f"  [{o.id}] {o.scheduled_date}: {o.status_text}")
    else:
        lines.append("No scheduled statuses")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Session commands
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — sign in, creating a company on first contact."""
    tenants: TenantDB = context.bot_data["tenants"]
    user = update.effective_user

    member = tenants.get_member(user.id)
    if member is None:
        tenant = tenants.create_tenant("My Company")
        member = tenants.add_member(user.id, tenant.id, user.first_name or str(user.id), is_admin=True)
        company = tenant.company_name
    else:
        tenant = tenants.get_tenant(member.tenant_id)
        company = tenant.company_name if tenant else ""

    await update.message.reply_text(
        f"Welcome to the status board of {company}!\n\n"
        "• /roster — see who is in and who is out\n"
        "• /add <name> — add an employee\n"
        "• /status <employee> [text] — set a status\n"
        "• /schedule and /recurring — plan statuses ahead\n\n"
        "Type /help for the full command list."
    )


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    await update.message.reply_text(
        "Roster:\n"
        "/roster, /refresh — Show today's board\n"
        "/watch — Post a board that updates live, /unwatch to stop\n\n"
        "Employees:\n"
        "/add <name> — Add an employee\n"
        "/status <employee> [text] — Set a status (no text: pick one)\n"
        "/edit <employee> <name|phone|email> <value> — Edit contact fields\n"
        "/profile <employee> — Show details and plans\n"
        "/remove <employee> — Remove an employee (admin mode)\n"
        "Send a photo captioned with a name to set an avatar\n\n"
        "Planning:\n"
        "/schedule <employee> <YYYY-MM-DD> <text> — One-off status\n"
        "/unschedule <id> — Remove a scheduled status\n"
        "/recurring <employee> <day> [text] — Weekly status (no text clears)\n"
        "/recurring_on <employee>, /recurring_off <employee>\n\n"
        "Options:\n"
        "/statuses, /addstatus <text>, /delstatus <id>\n"
        "/company [name] — Show or rename the company\n"
        "/banner [text|clear] — Announcement banner (admin mode)\n"
        "/admin — Toggle admin mode\n"
        "/deleteaccount — Delete the company and all data"
    )


@member_only
async def cmd_admin(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """Handle /admin — toggle admin controls for this user."""
    enabled = not _is_admin_mode(context)
    context.user_data["admin_mode"] = enabled
    await update.message.reply_text("Admin mode on" if enabled else "Admin mode off")


# ---------------------------------------------------------------------------
# Roster commands
# ---------------------------------------------------------------------------


async def _company(context: ContextTypes.DEFAULT_TYPE, tenant_id: int) -> str:
    options: OptionsService = context.bot_data["options"]
    try:
        return await options.company_name(tenant_id)
    except Exception as exc:
        logger.warning("Company name unavailable for tenant #%d: %s", tenant_id, exc)
        return ""


@member_only
async def cmd_roster(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """Handle /roster and /refresh — explicit load, runs status resolution."""
    roster_service: RosterService = context.bot_data["roster"]
    try:
        roster = await roster_service.load_roster(member.tenant_id, _session(update, context))
    except RosterUnavailableError:
        # The session-guarded notice has already been sent.
        return

    company = await _company(context, member.tenant_id)
    await update.message.reply_text(format_roster(roster, company))


@member_only
async def cmd_watch(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """Handle /watch — post a board message and keep it current."""
    roster_service: RosterService = context.bot_data["roster"]
    tenant_id = member.tenant_id

    _stop_watch(context)
    try:
        roster = await roster_service.load_roster(tenant_id, _session(update, context))
    except RosterUnavailableError:
        return

    company = await _company(context, tenant_id)
    message = await update.message.reply_text(format_roster(roster, company))

    async def _on_roster(updated: Roster) -> None:
        try:
            await message.edit_text(format_roster(updated, company))
        except BadRequest as exc:
            # "Message is not modified" when nothing visible changed.
            logger.debug("Live roster edit skipped: %s", exc)

    context.chat_data["unwatch"] = roster_service.watch(tenant_id, _on_roster)
    logger.info("Chat %d watching tenant #%d", update.effective_chat.id, tenant_id)


def _stop_watch(context: ContextTypes.DEFAULT_TYPE) -> bool:
    unwatch = context.chat_data.pop("unwatch", None)
    if unwatch is None:
        return False
    unwatch()
    return True


@member_only
async def cmd_unwatch(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """Handle /unwatch — stop editing the live board."""
    if _stop_watch(context):
        await update.message.reply_text("Live board stopped.")
    else:
        await update.message.reply_text("No live board in this chat.")


# ---------------------------------------------------------------------------
# Employee commands
# ---------------------------------------------------------------------------


@member_only
async def cmd_add(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """Handle /add <name>."""
    employees: EmployeeService = context.bot_data["employees"]
    name = " ".join(context.args or [])
    try:
        employee = await employees.add_employee(member.tenant_id, name)
    except Exception as exc:
        await _reply_failure(update, exc, "/add")
        return
    await update.message.reply_text(f"✅ Added {employee.name} (#{employee.id}).")


@member_only
async def cmd_remove(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """Handle /remove <employee> — admin mode only."""
    if not _is_admin_mode(context):
        await update.message.reply_text("Turn on admin mode with /admin first.")
        return

    employees: EmployeeService = context.bot_data["employees"]
    ref = " ".join(_split_args(context))
    try:
        employee = await employees.find_employee(member.tenant_id, ref)
        await employees.remove_employee(member.tenant_id, employee.id)
    except Exception as exc:
        await _reply_failure(update, exc, "/remove")
        return
    await update.message.reply_text(f"✅ {employee.name} removed.")


@member_only
async def cmd_status(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """Handle /status <employee> [text] — no text shows quick-select buttons."""
    employees: EmployeeService = context.bot_data["employees"]
    options: OptionsService = context.bot_data["options"]
    args = _split_args(context)
    if not args:
        await update.message.reply_text("Usage: /status <employee> [text]")
        return

    try:
        employee = await employees.find_employee(member.tenant_id, args[0])
        if len(args) == 1:
            choices = await options.list_statuses(member.tenant_id, _session(update, context))
            keyboard = [
                [InlineKeyboardButton(s.status_text, callback_data=f"setstatus:{employee.id}:{s.id}")]
                for s in choices
            ]
            await update.message.reply_text(
                f"{employee.name} is '{employee.status}'. Pick a status, "
                f"or send /status {employee.id} <custom text>:",
                reply_markup=InlineKeyboardMarkup(keyboard),
            )
            return
        updated = await employees.set_status(member.tenant_id, employee.id, " ".join(args[1:]))
    except Exception as exc:
        await _reply_failure(update, exc, "/status")
        return
    await update.message.reply_text(f"✅ {updated.name}: {updated.status}")


async def _handle_setstatus_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle the inline button tap from /status."""
    employees: EmployeeService = context.bot_data["employees"]
    options: OptionsService = context.bot_data["options"]
    tenants: TenantDB = context.bot_data["tenants"]

    query = update.callback_query
    await query.answer()

    user = query.from_user
    if user is None or user.id not in settings.ALLOWED_USER_IDS:
        return
    member = tenants.get_member(user.id)
    if member is None:
        return

    _, employee_id, status_id = query.data.split(":")
    try:
        choices = await options.list_statuses(member.tenant_id)
        text = next((s.status_text for s in choices if s.id == int(status_id)), None)
        if text is None:
            await query.edit_message_text("That status option no longer exists.")
            return
        updated = await employees.set_status(member.tenant_id, int(employee_id), text)
    except ValidationError as exc:
        await query.edit_message_text(str(exc))
        return
    except Exception as exc:
        logger.error("setstatus callback error: %s", exc)
        await query.edit_message_text("Failed to update status")
        return
    await query.edit_message_text(f"✅ {updated.name}: {updated.status}")


@member_only
async def cmd_edit(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """Handle /edit <employee> <name|phone|email> <value>."""
    employees: EmployeeService = context.bot_data["employees"]
    args = _split_args(context)
    if len(args) < 2:
        await update.message.reply_text("Usage: /edit <employee> <name|phone|email> <value>")
        return

    field = args[1].lower()
    try:
        employee = await employees.find_employee(member.tenant_id, args[0])
        await employees.update_field(member.tenant_id, employee.id, field, " ".join(args[2:]))
    except Exception as exc:
        await _reply_failure(update, exc, "/edit")
        return
    await update.message.reply_text(f"✅ Updated {field} for #{employee.id}.")


@member_only
async def cmd_profile(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """Handle /profile <employee>."""
    employees: EmployeeService = context.bot_data["employees"]
    ref = " ".join(_split_args(context))
    try:
        employee = await employees.find_employee(member.tenant_id, ref)
        rules = await employees.list_recurring_statuses(member.tenant_id, employee.id)
        overrides = await employees.list_scheduled_statuses(member.tenant_id, employee.id)
    except Exception as exc:
        await _reply_failure(update, exc, "/profile")
        return
    await update.message.reply_text(format_profile(employee, rules, overrides))


@member_only
async def handle_photo(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """A photo captioned with an employee's name or id becomes their avatar."""
    employees: EmployeeService = context.bot_data["employees"]
    caption = (update.message.caption or "").strip()
    if not caption:
        await update.message.reply_text("Caption the photo with the employee's name to set an avatar.")
        return

    photo = update.message.photo[-1]  # largest size
    try:
        employee = await employees.find_employee(member.tenant_id, caption)
        await employees.set_avatar(member.tenant_id, employee.id, photo.file_id)
    except Exception as exc:
        await _reply_failure(update, exc, "avatar upload")
        return
    await update.message.reply_text(f"✅ Avatar updated for {employee.name}.")


# ---------------------------------------------------------------------------
# Planning commands
# ---------------------------------------------------------------------------


@member_only
async def cmd_schedule(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """Handle /schedule <employee> <YYYY-MM-DD> <text>."""
    employees: EmployeeService = context.bot_data["employees"]
    args = _split_args(context)
    if len(args) < 3:
        await update.message.reply_text("Please select a date and enter a status.\n"
                                        "Usage: /schedule <employee> <YYYY-MM-DD> <text>")
        return

    try:
        employee = await employees.find_employee(member.tenant_id, args[0])
        override = await employees.add_scheduled_status(
            member.tenant_id, employee.id, args[1], " ".join(args[2:]),
        )
    except Exception as exc:
        await _reply_failure(update, exc, "/schedule")
        return
    await update.message.reply_text(
        f"✅ Scheduled '{override.status_text}' for {employee.name} on "
        f"{override.scheduled_date} (id {override.id})."
    )


@member_only
async def cmd_unschedule(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """Handle /unschedule <id>."""
    employees: EmployeeService = context.bot_data["employees"]
    args = context.args or []
    if not args or not args[0].isdigit():
        await update.message.reply_text("Usage: /unschedule <id>\nUse /profile to see IDs.")
        return

    try:
        await employees.remove_scheduled_status(member.tenant_id, int(args[0]))
    except Exception as exc:
        await _reply_failure(update, exc, "/unschedule")
        return
    await update.message.reply_text("✅ Scheduled status removed")


@member_only
async def cmd_recurring(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """Handle /recurring <employee> <day> [text] — empty text clears the day."""
    employees: EmployeeService = context.bot_data["employees"]
    args = _split_args(context)
    if len(args) < 2:
        await update.message.reply_text("Usage: /recurring <employee> <day> [text]")
        return

    try:
        employee = await employees.find_employee(member.tenant_id, args[0])
        rule = await employees.save_recurring_status(
            member.tenant_id, employee.id, args[1], " ".join(args[2:]),
        )
    except Exception as exc:
        await _reply_failure(update, exc, "/recurring")
        return

    if rule is None:
        await update.message.reply_text(f"✅ Cleared the {args[1]} status for {employee.name}.")
        return
    msg = f"✅ Every {DAY_NAMES[rule.day_of_week]}: {employee.name} is '{rule.status_text}'."
    if not employee.recurring_enabled:
        msg += f"\nRecurring statuses are disabled; turn them on with /recurring_on {employee.id}"
    await update.message.reply_text(msg)


async def _toggle_recurring(
    update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member, enabled: bool,
) -> None:
    employees: EmployeeService = context.bot_data["employees"]
    ref = " ".join(_split_args(context))
    try:
        employee = await employees.find_employee(member.tenant_id, ref)
        await employees.set_recurring_enabled(member.tenant_id, employee.id, enabled)
    except Exception as exc:
        await _reply_failure(update, exc, "/recurring toggle")
        return
    state = "enabled" if enabled else "disabled"
    await update.message.reply_text(f"✅ Recurring statuses {state} for {employee.name}")


@member_only
async def cmd_recurring_on(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    await _toggle_recurring(update, context, member, True)


@member_only
async def cmd_recurring_off(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    await _toggle_recurring(update, context, member, False)


# ---------------------------------------------------------------------------
# Options commands
# ---------------------------------------------------------------------------


@member_only
async def cmd_statuses(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """Handle /statuses — list quick-select choices."""
    options: OptionsService = context.bot_data["options"]
    try:
        choices = await options.list_statuses(member.tenant_id, _session(update, context))
    except Exception as exc:
        # A session-guarded notice was sent by the service.
        logger.error("/statuses error: %s", exc)
        return

    lines = ["Status options:"]
    lines += [f"[{s.id}] {s.status_text}" for s in choices]
    await update.message.reply_text("\n".join(lines))


@member_only
async def cmd_addstatus(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """Handle /addstatus <text>."""
    options: OptionsService = context.bot_data["options"]
    try:
        added = await options.add_status(member.tenant_id, " ".join(context.args or []))
    except Exception as exc:
        await _reply_failure(update, exc, "/addstatus")
        return
    await update.message.reply_text(f"✅ Status added: {added.status_text}")


@member_only
async def cmd_delstatus(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """Handle /delstatus <id>."""
    options: OptionsService = context.bot_data["options"]
    args = context.args or []
    if not args or not args[0].isdigit():
        await update.message.reply_text("Usage: /delstatus <id>\nUse /statuses to see IDs.")
        return
    try:
        await options.remove_status(member.tenant_id, int(args[0]))
    except Exception as exc:
        await _reply_failure(update, exc, "/delstatus")
        return
    await update.message.reply_text("✅ Status removed")


@member_only
async def cmd_company(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """Handle /company [name] — show or rename."""
    options: OptionsService = context.bot_data["options"]
    name = " ".join(context.args or [])
    try:
        if not name:
            current = await options.company_name(member.tenant_id)
            await update.message.reply_text(f"Company: {current}")
            return
        renamed = await options.rename_company(member.tenant_id, name)
    except Exception as exc:
        await _reply_failure(update, exc, "/company")
        return
    await update.message.reply_text(f"✅ Company name updated: {renamed}")


@member_only
async def cmd_banner(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """Handle /banner [text|clear] — setting it needs admin mode."""
    options: OptionsService = context.bot_data["options"]
    text = " ".join(context.args or [])
    try:
        if not text:
            current = await options.get_banner(member.tenant_id)
            await update.message.reply_text(f"📢 {current}" if current else "No banner set.")
            return
        if not _is_admin_mode(context):
            await update.message.reply_text("Turn on admin mode with /admin first.")
            return
        await options.set_banner(member.tenant_id, "" if text.lower() == "clear" else text)
    except Exception as exc:
        await _reply_failure(update, exc, "/banner")
        return
    await update.message.reply_text("✅ Message updated")


@member_only
async def cmd_deleteaccount(update: Update, context: ContextTypes.DEFAULT_TYPE, member: Member) -> None:
    """Handle /deleteaccount — ask for confirmation first."""
    keyboard = [[
        InlineKeyboardButton("Yes, delete everything", callback_data="delacct:yes"),
        InlineKeyboardButton("Cancel", callback_data="delacct:no"),
    ]]
    await update.message.reply_text(
        "This permanently deletes the company with all employees, statuses and settings. "
        "This cannot be undone.",
        reply_markup=InlineKeyboardMarkup(keyboard),
    )


async def _handle_deleteaccount_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE,
) -> None:
    """Handle the confirmation buttons from /deleteaccount."""
    options: OptionsService = context.bot_data["options"]
    tenants: TenantDB = context.bot_data["tenants"]

    query = update.callback_query
    await query.answer()

    user = query.from_user
    if user is None or user.id not in settings.ALLOWED_USER_IDS:
        return
    member = tenants.get_member(user.id)
    if member is None:
        await query.edit_message_text("Account already deleted.")
        return

    if query.data != "delacct:yes":
        await query.edit_message_text("Account deletion canceled.")
        return

    _stop_watch(context)
    try:
        await options.delete_account(member.tenant_id)
    except Exception as exc:
        logger.error("deleteaccount callback error: %s", exc)
        await query.edit_message_text("Failed to delete account")
        return
    context.user_data.pop("admin_mode", None)
    await query.edit_message_text("Account deleted successfully")


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


def build_app(
    store: StatusStorePort | None = None,
    clock: ClockPort | None = None,
    notifier: NotificationPort | None = None,
    feed: ChangeFeed | None = None,
) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        store: Store port implementation. Defaults to SQLiteStatusStore
               wired to a fresh change feed.
        clock: Clock port implementation. Defaults to SystemClock.
        notifier: Notification port implementation. Defaults to TelegramNotifier
                  (created from the bot instance after app is built).
        feed: Change feed the store publishes on. Pass the same one the
              store was built with so /watch sees its writes.
    """
    from statusboard.core.change_feed import ChangeFeed
    from statusboard.core.employee_service import EmployeeService
    from statusboard.core.options_service import OptionsService
    from statusboard.core.roster import RosterService
    from statusboard.data.db import TenantDB

    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).build()

    if feed is None:
        feed = ChangeFeed()
    if store is None:
        from statusboard.adapters.sqlite_store import SQLiteStatusStore
        store = SQLiteStatusStore(feed=feed)

    if clock is None:
        from statusboard.adapters.system_clock import SystemClock
        clock = SystemClock()

    if notifier is None:
        from statusboard.adapters.telegram_notifier import TelegramNotifier
        notifier = TelegramNotifier(app.bot)

    # Store services in bot_data for handler access
    app.bot_data["tenants"] = getattr(store, "tenants", None) or TenantDB()
    app.bot_data["roster"] = RosterService(store, clock, feed=feed, notifier=notifier)
    app.bot_data["employees"] = EmployeeService(store, clock)
    app.bot_data["options"] = OptionsService(store, notifier=notifier)

    # Session
    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("admin", cmd_admin))

    # Roster
    app.add_handler(CommandHandler(["roster", "refresh"], cmd_roster))
    app.add_handler(CommandHandler("watch", cmd_watch))
    app.add_handler(CommandHandler("unwatch", cmd_unwatch))

    # Employees
    app.add_handler(CommandHandler("add", cmd_add))
    app.add_handler(CommandHandler("remove", cmd_remove))
    app.add_handler(CommandHandler("status", cmd_status))
    app.add_handler(CommandHandler("edit", cmd_edit))
    app.add_handler(CommandHandler("profile", cmd_profile))
    app.add_handler(CallbackQueryHandler(_handle_setstatus_callback, pattern=r"^setstatus:\d+:\d+$"))
    app.add_handler(MessageHandler(filters.PHOTO, handle_photo))

    # Planning
    app.add_handler(CommandHandler("schedule", cmd_schedule))
    app.add_handler(CommandHandler("unschedule", cmd_unschedule))
    app.add_handler(CommandHandler("recurring", cmd_recurring))
    app.add_handler(CommandHandler("recurring_on", cmd_recurring_on))
    app.add_handler(CommandHandler("recurring_off", cmd_recurring_off))

    # Options
    app.add_handler(CommandHandler("statuses", cmd_statuses))
    app.add_handler(CommandHandler("addstatus", cmd_addstatus))
    app.add_handler(CommandHandler("delstatus", cmd_delstatus))
    app.add_handler(CommandHandler("company", cmd_company))
    app.add_handler(CommandHandler("banner", cmd_banner))
    app.add_handler(CommandHandler("deleteaccount", cmd_deleteaccount))
    app.add_handler(CallbackQueryHandler(_handle_deleteaccount_callback, pattern=r"^delacct:"))

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting Status Board bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
