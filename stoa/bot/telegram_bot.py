"""
Stoa Assistant — Telegram Bot.

Telegram is the presentation layer of Stoa: habits, tasks, imports,
settings and the AI coach chat all flow through this bot. Handlers are thin:
they call the tracking / account / chat services and render the response
objects those return.

Security-first: when ALLOWED_USER_IDS is set, everyone else is silently
ignored.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import time as dt_time
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine
from zoneinfo import ZoneInfo

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.constants import ChatAction
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    ConversationHandler,
    MessageHandler,
    filters,
)

from stoa.config import settings
from stoa.core.reveal import TypingAnimation
from stoa.core.tracking_service import (
    ImportPreviewResponse,
    PaywallResponse,
    ResponseKind,
    ServiceResponse,
)
from stoa.data.models import Habit, HabitMood, Task
from stoa.ports.auth_port import AuthError

if TYPE_CHECKING:
    from stoa.core.account_service import AccountService
    from stoa.core.chat import ChatService
    from stoa.core.tracking_service import TrackingService
    from stoa.data.db import UserDB
    from stoa.ports.auth_port import AuthPort
    from stoa.ports.import_port import ImportPort
    from stoa.ports.notification_port import NotificationPort
    from stoa.ports.subscription_port import SubscriptionPort
    from stoa.ports.surface_port import MessageSurface
    from stoa.ports.tracker_port import HabitManagerPort, TaskManagerPort

logger = logging.getLogger(__name__)

Handler = Callable[..., Coroutine[Any, Any, Any]]


# ---------------------------------------------------------------------------
# Security: silent-ignore and sign-in decorators
# ---------------------------------------------------------------------------


def _is_allowed(user_id: int) -> bool:
    return not settings.ALLOWED_USER_IDS or user_id in settings.ALLOWED_USER_IDS


def authorized_only(func: Handler) -> Handler:
    """Decorator that silently ignores updates from users outside the allow-list.

    Does NOT send any response to strangers — the bot must not reveal
    its existence to unauthorized users.
    """

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> Any:
        user = update.effective_user
        if user is None or not _is_allowed(user.id):
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


def signed_in_only(func: Handler) -> Handler:
    """Decorator that asks signed-out users to /start before anything else."""

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> Any:
        auth: AuthPort = context.bot_data["auth"]
        try:
            signed_in = await auth.is_signed_in(update.effective_user.id)
        except AuthError as exc:
            logger.error("Session check failed: %s", exc)
            signed_in = False
        if not signed_in:
            if update.callback_query:
                await update.callback_query.answer()
            await update.effective_message.reply_text(
                "Please send /start to sign in first."
            )
            return ConversationHandler.END
        return await func(update, context)

    return wrapper


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def _response_text(response: ServiceResponse) -> str:
    if isinstance(response, PaywallResponse):
        return (
            f"🔒 {response.message}\n\n"
            "Already upgraded on another device? Use /restore."
        )
    if response.kind is ResponseKind.ERROR:
        return f"⚠️ {response.message}"
    return response.message


def _habit_keyboard(habit: Habit, completed_today: bool) -> InlineKeyboardMarkup:
    rows = []
    if habit.is_active and not completed_today:
        rows.append([InlineKeyboardButton("✅ Check in", callback_data=f"checkin:{habit.id}")])
    rows.append([
        InlineKeyboardButton("📊 Stats", callback_data=f"habit:stats:{habit.id}"),
        InlineKeyboardButton("🔗 Share", callback_data=f"habit:share:{habit.id}"),
    ])
    rows.append([
        InlineKeyboardButton(
            "⏸ Pause" if habit.is_active else "▶️ Resume",
            callback_data=f"habit:toggle:{habit.id}",
        ),
        InlineKeyboardButton("🗑 Delete", callback_data=f"habit:delete:{habit.id}"),
    ])
    return InlineKeyboardMarkup(rows)


def _task_keyboard(task: Task) -> InlineKeyboardMarkup:
    rows = [
        [InlineKeyboardButton(
            f"{'☑' if step.is_completed else '☐'} {index + 1}",
            callback_data=f"tstep:{task.id}:{index}",
        )]
        for index, step in enumerate(task.steps)
    ]
    rows.append([
        InlineKeyboardButton(
            "↩️ Reopen" if task.is_completed else "✅ Done",
            callback_data=f"task:done:{task.id}",
        ),
        InlineKeyboardButton("🔗 Share", callback_data=f"task:share:{task.id}"),
    ])
    rows.append([
        InlineKeyboardButton(
            "⏸ Pause" if task.is_active else "▶️ Resume",
            callback_data=f"task:toggle:{task.id}",
        ),
        InlineKeyboardButton("🗑 Delete", callback_data=f"task:delete:{task.id}"),
    ])
    return InlineKeyboardMarkup(rows)


_IMPORT_KEYBOARD = InlineKeyboardMarkup([[
    InlineKeyboardButton("📥 Import", callback_data="import:confirm"),
    InlineKeyboardButton("✖️ Discard", callback_data="import:discard"),
]])


def _importer(context: ContextTypes.DEFAULT_TYPE) -> ImportPort:
    """The user's pending-import holder, created on first use."""
    if "importer" not in context.user_data:
        context.user_data["importer"] = context.bot_data["import_factory"]()
    return context.user_data["importer"]


async def _reply_response(update: Update, response: ServiceResponse) -> None:
    markup = _IMPORT_KEYBOARD if isinstance(response, ImportPreviewResponse) else None
    await update.effective_message.reply_text(_response_text(response), reply_markup=markup)


# ---------------------------------------------------------------------------
# Account commands
# ---------------------------------------------------------------------------


_HELP_TEXT = (
    "*Available commands:*\n"
    "/habits — Your habits, with check-in, stats and share buttons\n"
    "/tasks — Your tasks and their steps\n"
    "/checkin — Check in on a habit\n"
    "/import — Import a shared habit or task\n"
    "/settings — Plan and reminder settings\n"
    "/restore — Restore purchases\n"
    "/stop — Stop the reply being typed\n"
    "/signout — Sign out\n"
    "/deleteaccount — Delete your account and data\n"
    "/help — Show this message\n\n"
    "Anything else you type goes to your coach."
)


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — sign in with the Telegram identity and say hello."""
    account: AccountService = context.bot_data["account"]
    user = update.effective_user
    response = await account.sign_in(user.id, user.full_name or user.first_name or "friend")
    if response.kind is ResponseKind.NO_ACTION:
        return
    if response.kind is ResponseKind.ERROR:
        await update.message.reply_text(_response_text(response))
        return

    await update.message.reply_text(
        f"{response.message}\n\n"
        "I'm Stoa, your habit and productivity coach.\n"
        "• Tell me what you'd like to improve and I'll suggest a habit or a task plan\n"
        "• Use /habits and /tasks to track your progress\n"
        "• Use /import to add something a friend shared\n\n"
        "Type /help for the full command list.",
    )


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    await update.message.reply_text(_HELP_TEXT, parse_mode="Markdown")


@authorized_only
@signed_in_only
async def cmd_settings(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /settings — plan and reminder status with toggles."""
    account: AccountService = context.bot_data["account"]
    response = await account.settings_summary(update.effective_user.id)
    keyboard = None
    if response.kind is ResponseKind.SUCCESS:
        keyboard = InlineKeyboardMarkup([
            [InlineKeyboardButton("🔔 Toggle reminders", callback_data="settings:reminders")],
            [InlineKeyboardButton("♻️ Restore purchases", callback_data="settings:restore")],
        ])
    await update.message.reply_text(_response_text(response), reply_markup=keyboard)


@authorized_only
@signed_in_only
async def _handle_settings_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    account: AccountService = context.bot_data["account"]
    query = update.callback_query
    await query.answer()

    action = query.data.split(":")[1]
    user_id = query.from_user.id
    if action == "reminders":
        response = await account.toggle_reminders(user_id)
    else:
        response = await account.restore_purchases(user_id)
    await query.edit_message_text(_response_text(response))


@authorized_only
@signed_in_only
async def cmd_restore(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /restore — restore purchases."""
    account: AccountService = context.bot_data["account"]
    response = await account.restore_purchases(update.effective_user.id)
    await update.message.reply_text(_response_text(response))


@authorized_only
@signed_in_only
async def cmd_signout(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /signout."""
    account: AccountService = context.bot_data["account"]
    await _close_animation(context.chat_data)
    response = await account.sign_out(update.effective_user.id)
    if response.kind is ResponseKind.SUCCESS:
        context.chat_data.pop("history", None)
        context.user_data.pop("importer", None)
    await update.message.reply_text(_response_text(response))


@authorized_only
@signed_in_only
async def cmd_deleteaccount(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /deleteaccount — ask for confirmation first."""
    keyboard = InlineKeyboardMarkup([[
        InlineKeyboardButton("Delete everything", callback_data="account:delete:yes"),
        InlineKeyboardButton("Keep my account", callback_data="account:delete:no"),
    ]])
    await update.message.reply_text(
        "This permanently deletes your account with all habits, check-ins and tasks. "
        "Are you sure?",
        reply_markup=keyboard,
    )


@authorized_only
async def _handle_delete_account_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE
) -> None:
    account: AccountService = context.bot_data["account"]
    query = update.callback_query
    await query.answer()

    if query.data.rsplit(":", 1)[1] != "yes":
        await query.edit_message_text("Your account was not deleted.")
        return

    await _close_animation(context.chat_data)
    response = await account.delete_account(query.from_user.id)
    if response.kind is ResponseKind.SUCCESS:
        context.chat_data.pop("history", None)
        context.user_data.pop("importer", None)
    await query.edit_message_text(_response_text(response))


# ---------------------------------------------------------------------------
# Habits
# ---------------------------------------------------------------------------


@authorized_only
@signed_in_only
async def cmd_habits(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /habits — one card per habit with its actions."""
    tracking: TrackingService = context.bot_data["tracking"]
    response = await tracking.list_habits(update.effective_user.id)
    if response.kind is not ResponseKind.LIST:
        await update.message.reply_text(_response_text(response))
        return

    await update.message.reply_text(response.message)
    for item in response.items:
        await update.message.reply_text(
            item.text, reply_markup=_habit_keyboard(item.habit, item.completed_today),
        )


@authorized_only
@signed_in_only
async def _handle_habit_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Inline habit actions: habit:<stats|share|toggle|delete>:<habit_id>."""
    tracking: TrackingService = context.bot_data["tracking"]
    query = update.callback_query
    await query.answer()

    _, action, habit_id = query.data.split(":", 2)
    user_id = query.from_user.id

    if action == "stats":
        response = await tracking.habit_stats(user_id, habit_id)
        await query.message.reply_text(_response_text(response))
    elif action == "share":
        response = await tracking.share_habit(user_id, habit_id)
        await query.message.reply_text(_response_text(response))
    elif action == "toggle":
        response = await tracking.toggle_habit_active(user_id, habit_id)
        if response.kind is ResponseKind.SUCCESS:
            await query.edit_message_reply_markup(
                reply_markup=_habit_keyboard(response.habit, completed_today=False),
            )
        await query.message.reply_text(_response_text(response))
    elif action == "delete":
        response = await tracking.delete_habit(user_id, habit_id)
        await query.edit_message_text(_response_text(response))


# ConversationHandler states for check-ins
CHECKIN_PICK, CHECKIN_RATING, CHECKIN_MOOD, CHECKIN_NOTES = range(4)

_CHECKIN_KEYS = ("checkin_habit_id", "checkin_rating", "checkin_mood")


def _rating_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup([
        [InlineKeyboardButton("⭐" * n, callback_data=f"rate:{n}") for n in range(1, 6)],
        [InlineKeyboardButton("Skip", callback_data="rate:skip")],
    ])


def _mood_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton(f"{m.emoji} {m.value}", callback_data=f"mood:{m.name}")]
         for m in HabitMood]
        + [[InlineKeyboardButton("Skip", callback_data="mood:skip")]]
    )


def _clear_checkin_data(context: ContextTypes.DEFAULT_TYPE) -> None:
    for key in _CHECKIN_KEYS:
        context.user_data.pop(key, None)


@authorized_only
@signed_in_only
async def cmd_checkin(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Handle /checkin — pick one of today's pending habits."""
    tracking: TrackingService = context.bot_data["tracking"]
    response = await tracking.list_habits(update.effective_user.id)
    if response.kind is not ResponseKind.LIST:
        await update.message.reply_text(_response_text(response))
        return ConversationHandler.END

    pending = [i for i in response.items if i.habit.is_active and not i.completed_today]
    if not pending:
        await update.message.reply_text("🎉 You've checked in on every habit today!")
        return ConversationHandler.END

    keyboard = [
        [InlineKeyboardButton(i.habit.name, callback_data=f"checkin:{i.habit.id}")]
        for i in pending
    ]
    await update.message.reply_text(
        "Which habit did you complete?", reply_markup=InlineKeyboardMarkup(keyboard),
    )
    return CHECKIN_PICK


@authorized_only
@signed_in_only
async def checkin_pick(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Habit chosen (from /checkin or a habit card) — ask for a rating."""
    query = update.callback_query
    await query.answer()
    _clear_checkin_data(context)
    context.user_data["checkin_habit_id"] = query.data.split(":", 1)[1]
    await query.message.reply_text(
        "How did it go? Rate it from 1 to 5.", reply_markup=_rating_keyboard(),
    )
    return CHECKIN_RATING


async def checkin_rating(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    query = update.callback_query
    await query.answer()
    value = query.data.split(":", 1)[1]
    context.user_data["checkin_rating"] = None if value == "skip" else int(value)
    await query.edit_message_text("How are you feeling?", reply_markup=_mood_keyboard())
    return CHECKIN_MOOD


async def checkin_mood(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    query = update.callback_query
    await query.answer()
    value = query.data.split(":", 1)[1]
    context.user_data["checkin_mood"] = None if value == "skip" else HabitMood[value]
    await query.edit_message_text(
        "Any notes or reflections? Type them, or send /skip."
    )
    return CHECKIN_NOTES


async def _finish_checkin(
    update: Update, context: ContextTypes.DEFAULT_TYPE, notes: str | None,
) -> int:
    tracking: TrackingService = context.bot_data["tracking"]
    response = await tracking.check_in(
        update.effective_user.id,
        context.user_data.get("checkin_habit_id", ""),
        notes=notes,
        rating=context.user_data.get("checkin_rating"),
        mood=context.user_data.get("checkin_mood"),
    )
    _clear_checkin_data(context)
    await update.message.reply_text(_response_text(response))
    return ConversationHandler.END


async def checkin_notes(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    return await _finish_checkin(update, context, update.message.text.strip())


async def checkin_skip_notes(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    return await _finish_checkin(update, context, None)


async def checkin_cancel(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    _clear_checkin_data(context)
    await update.effective_message.reply_text("Check-in cancelled.")
    return ConversationHandler.END


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@authorized_only
@signed_in_only
async def cmd_tasks(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /tasks — one card per task with step toggles."""
    tracking: TrackingService = context.bot_data["tracking"]
    response = await tracking.list_tasks(update.effective_user.id)
    if response.kind is not ResponseKind.LIST:
        await update.message.reply_text(_response_text(response))
        return

    await update.message.reply_text(response.message)
    for item in response.items:
        await update.message.reply_text(item.text, reply_markup=_task_keyboard(item.task))


@authorized_only
@signed_in_only
async def _handle_task_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Inline task actions: task:<done|share|toggle|delete>:<task_id>."""
    tracking: TrackingService = context.bot_data["tracking"]
    query = update.callback_query
    await query.answer()

    _, action, task_id = query.data.split(":", 2)
    user_id = query.from_user.id

    if action == "done":
        response = await tracking.toggle_task_completion(user_id, task_id)
    elif action == "toggle":
        response = await tracking.toggle_task_active(user_id, task_id)
    elif action == "share":
        response = await tracking.share_task(user_id, task_id)
        await query.message.reply_text(_response_text(response))
        return
    else:
        response = await tracking.delete_task(user_id, task_id)
        await query.edit_message_text(_response_text(response))
        return

    if response.kind is ResponseKind.SUCCESS:
        await query.edit_message_reply_markup(reply_markup=_task_keyboard(response.task))
    await query.message.reply_text(_response_text(response))


@authorized_only
@signed_in_only
async def _handle_step_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Inline step toggle: tstep:<task_id>:<step_index>."""
    tracking: TrackingService = context.bot_data["tracking"]
    query = update.callback_query
    await query.answer()

    _, task_id, index = query.data.split(":")
    response = await tracking.toggle_task_step(query.from_user.id, task_id, int(index))
    if response.kind is ResponseKind.SUCCESS:
        await query.edit_message_text(
            response.message, reply_markup=_task_keyboard(response.task),
        )
    else:
        await query.message.reply_text(_response_text(response))


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

IMPORT_WAIT = 0


@authorized_only
@signed_in_only
async def cmd_import(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Handle /import [link] — preview a shared habit or task."""
    if context.args:
        await _preview_import(" ".join(context.args), update, context)
        return ConversationHandler.END

    await update.message.reply_text(
        "Paste the shared text or import link (or /cancel)."
    )
    return IMPORT_WAIT


async def import_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    await _preview_import(update.message.text, update, context)
    return ConversationHandler.END


async def import_cancel(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    await update.message.reply_text("Import cancelled.")
    return ConversationHandler.END


async def _preview_import(text: str, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    tracking: TrackingService = context.bot_data["tracking"]
    response = await tracking.preview_import(_importer(context), text)
    await _reply_response(update, response)


@authorized_only
@signed_in_only
async def _handle_import_callback(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """import:confirm | import:discard for the pending import."""
    tracking: TrackingService = context.bot_data["tracking"]
    query = update.callback_query
    await query.answer()

    importer = _importer(context)
    if query.data == "import:confirm":
        response = await tracking.confirm_import(query.from_user.id, importer)
    else:
        response = await tracking.discard_import(importer)
    await query.edit_message_text(_response_text(response))


# ---------------------------------------------------------------------------
# Coach chat with typing reveal
# ---------------------------------------------------------------------------


async def _close_animation(chat_data: dict) -> None:
    """Tear down the reveal owned by this chat and cancel its pending reply."""
    animation: TypingAnimation | None = chat_data.pop("animation", None)
    reply_task: asyncio.Task | None = chat_data.pop("reply_task", None)
    if animation is not None:
        await animation.aclose()
    if reply_task is not None and not reply_task.done():
        reply_task.cancel()
        # Let the superseded turn drop its own message before the next one starts
        await asyncio.gather(reply_task, return_exceptions=True)


async def _release_turn(chat_data: dict, animation: TypingAnimation) -> None:
    """Forget a finished turn without touching a newer turn's state."""
    if chat_data.get("animation") is animation:
        chat_data.pop("animation")
        chat_data.pop("reply_task", None)
    await animation.aclose()


@authorized_only
async def cmd_stop(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /stop — stop revealing the current reply."""
    if "animation" not in context.chat_data:
        await update.message.reply_text("Nothing to stop.")
        return
    await _close_animation(context.chat_data)
    await update.message.reply_text("⏹ Stopped.")


@authorized_only
@signed_in_only
async def handle_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle plain text — share links go to import, everything else to the coach."""
    from stoa.adapters.telegram_surface import TelegramMessageSurface

    text = update.message.text
    if text.strip().startswith("calendo://"):
        await _preview_import(text, update, context)
        return

    chat: ChatService = context.bot_data["chat"]
    tracking: TrackingService = context.bot_data["tracking"]

    # A new message tears down the previous reply's reveal
    await _close_animation(context.chat_data)

    surface: MessageSurface = TelegramMessageSurface(context.bot, update.effective_chat.id)
    animation = TypingAnimation.on_surface(
        surface,
        tick_interval=settings.reveal_tick_seconds,
        render_interval=settings.reveal_render_interval_seconds,
    )
    context.chat_data["animation"] = animation
    history = context.chat_data.setdefault("history", [])

    await context.bot.send_chat_action(update.effective_chat.id, ChatAction.TYPING)
    if animation.closed:
        return
    reply_task = asyncio.create_task(chat.reply(history, text, animation.update))
    context.chat_data["reply_task"] = reply_task
    try:
        message = await reply_task
    except asyncio.CancelledError:
        if animation.closed:
            logger.debug("Coach reply superseded in chat %d", update.effective_chat.id)
            return
        raise
    except Exception as exc:
        logger.error("Coach reply failed: %s", exc)
        await _release_turn(context.chat_data, animation)
        await update.message.reply_text(
            "Sorry, I couldn't reach your coach right now. Please try again."
        )
        return

    await animation.wait()
    if animation.closed:
        return
    await _release_turn(context.chat_data, animation)

    if message.suggested_habit or message.suggested_task:
        response = await tracking.preview_suggestion(
            _importer(context), message.suggested_habit, message.suggested_task,
        )
        await _reply_response(update, response)


async def _close_all_animations(app: Application) -> None:
    """post_shutdown hook: no reveal outlives the application."""
    for chat_data in app.chat_data.values():
        await _close_animation(chat_data)


# ---------------------------------------------------------------------------
# App builder
# ---------------------------------------------------------------------------


def build_app(
    habits: HabitManagerPort | None = None,
    tasks: TaskManagerPort | None = None,
    auth: AuthPort | None = None,
    subscription: SubscriptionPort | None = None,
    notifier: NotificationPort | None = None,
    import_factory: Callable[[], ImportPort] | None = None,
    chat: ChatService | None = None,
    user_db: UserDB | None = None,
) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Every collaborator defaults to the local SQLite / Telegram adapter; pass
    your own to swap one out.
    """
    from stoa.core.account_service import AccountService
    from stoa.core.tracking_service import TrackingService

    app = (
        ApplicationBuilder()
        .token(settings.TELEGRAM_BOT_TOKEN)
        .post_shutdown(_close_all_animations)
        .build()
    )

    # Wire default adapters if not provided
    if user_db is None:
        from stoa.data.db import UserDB
        user_db = UserDB()

    if habits is None:
        from stoa.adapters.sqlite_trackers import SQLiteHabitManager
        habits = SQLiteHabitManager()

    if tasks is None:
        from stoa.adapters.sqlite_trackers import SQLiteTaskManager
        tasks = SQLiteTaskManager()

    if auth is None:
        from stoa.adapters.telegram_auth import TelegramAuth
        auth = TelegramAuth(user_db)

    if subscription is None:
        from stoa.adapters.stored_subscription import StoredTierSubscription
        subscription = StoredTierSubscription(user_db)

    if notifier is None:
        from stoa.adapters.telegram_notifier import TelegramNotifier
        notifier = TelegramNotifier(app.bot, user_db)

    if import_factory is None:
        from stoa.core.importer import ImportService
        share_client = None
        if settings.SHARE_API_URL:
            from stoa.adapters.share_api import ShareApiClient
            share_client = ShareApiClient(settings.SHARE_API_URL)

        def import_factory() -> ImportPort:
            return ImportService(share_client)

    if chat is None:
        from stoa.core.chat import ChatService
        chat = ChatService()

    # Store ports and services in bot_data for handler access
    app.bot_data["auth"] = auth
    app.bot_data["notifier"] = notifier
    app.bot_data["import_factory"] = import_factory
    app.bot_data["chat"] = chat
    app.bot_data["tracking"] = TrackingService(habits, tasks, subscription)
    app.bot_data["account"] = AccountService(auth, subscription, notifier, user_db)

    # Commands
    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("habits", cmd_habits))
    app.add_handler(CommandHandler("tasks", cmd_tasks))
    app.add_handler(CommandHandler("settings", cmd_settings))
    app.add_handler(CommandHandler("restore", cmd_restore))
    app.add_handler(CommandHandler("signout", cmd_signout))
    app.add_handler(CommandHandler("deleteaccount", cmd_deleteaccount))
    app.add_handler(CommandHandler("stop", cmd_stop))

    # Check-in conversation (from /checkin or a habit card's button)
    _text = filters.TEXT & ~filters.COMMAND
    checkin_conv = ConversationHandler(
        entry_points=[
            CommandHandler("checkin", cmd_checkin),
            CallbackQueryHandler(checkin_pick, pattern=r"^checkin:"),
        ],
        states={
            CHECKIN_PICK: [CallbackQueryHandler(checkin_pick, pattern=r"^checkin:")],
            CHECKIN_RATING: [CallbackQueryHandler(checkin_rating, pattern=r"^rate:")],
            CHECKIN_MOOD: [CallbackQueryHandler(checkin_mood, pattern=r"^mood:")],
            CHECKIN_NOTES: [
                MessageHandler(_text, checkin_notes),
                CommandHandler("skip", checkin_skip_notes),
            ],
        },
        fallbacks=[CommandHandler("cancel", checkin_cancel)],
    )
    app.add_handler(checkin_conv)

    import_conv = ConversationHandler(
        entry_points=[CommandHandler("import", cmd_import)],
        states={IMPORT_WAIT: [MessageHandler(_text, import_text)]},
        fallbacks=[CommandHandler("cancel", import_cancel)],
    )
    app.add_handler(import_conv)

    # Inline keyboards
    app.add_handler(CallbackQueryHandler(_handle_habit_callback, pattern=r"^habit:"))
    app.add_handler(CallbackQueryHandler(_handle_task_callback, pattern=r"^task:"))
    app.add_handler(CallbackQueryHandler(_handle_step_callback, pattern=r"^tstep:"))
    app.add_handler(CallbackQueryHandler(_handle_import_callback, pattern=r"^import:"))
    app.add_handler(CallbackQueryHandler(_handle_settings_callback, pattern=r"^settings:"))
    app.add_handler(
        CallbackQueryHandler(_handle_delete_account_callback, pattern=r"^account:delete:")
    )

    # Coach chat runs non-blocking so /stop and new messages can interrupt a reveal
    app.add_handler(MessageHandler(_text, handle_text, block=False))

    # Daily reminder job
    _setup_daily_reminders(app, notifier, user_db, habits, tasks)

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def _setup_daily_reminders(
    app: Application,
    notifier: NotificationPort,
    user_db: UserDB,
    habits: HabitManagerPort,
    tasks: TaskManagerPort,
) -> None:
    """Register the daily reminder job at REMINDER_HOUR in TIMEZONE."""
    from stoa.core.scheduler import send_daily_reminders

    tz = ZoneInfo(settings.TIMEZONE)
    reminder_time = dt_time(hour=settings.REMINDER_HOUR, minute=0, tzinfo=tz)

    async def _reminder_job_callback(context: ContextTypes.DEFAULT_TYPE) -> None:
        await send_daily_reminders(notifier, user_db, habits, tasks)

    app.job_queue.run_daily(
        _reminder_job_callback,
        time=reminder_time,
        name="daily_reminders",
    )

    logger.info(
        "Daily reminders scheduled at %02d:00 %s",
        settings.REMINDER_HOUR,
        settings.TIMEZONE,
    )


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting Stoa Assistant bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
