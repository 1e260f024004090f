"""
SSR pages - server-side rendered HTML pages
"""
import logging
from datetime import date, timedelta
from pathlib import Path

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from seiton.api.deps import flash, get_db, local_now, local_today, pop_flashes, require_user
from seiton.application.dashboard import DashboardService
from seiton.application.inventory import (
    CreateInventoryItemUseCase, InventoryValidationError, count_low_stock, list_inventory,
)
from seiton.application.profile import ProfileService, ProfileValidationError, UpdateProfileDataUseCase
from seiton.application.rewards import RewardsService
from seiton.application.subscription import (
    ChangePlanUseCase, SubscriptionValidationError, build_plan_view, parse_months,
)
from seiton.application.tasks_usecases import (
    CreateTaskUseCase, PlanLimitError, TaskValidationError, ToggleTaskUseCase,
    list_tasks_for_date, upcoming_tasks,
)
from seiton.application.transactions import (
    CreateTransactionUseCase, TransactionValidationError, get_monthly_series, get_totals, list_transactions,
)
from seiton.auth import AuthError, AuthService
from seiton.config import get_settings
from seiton.domain.gamification import ACHIEVEMENTS_BY_ID, level_progress
from seiton.domain.inventory import UNITS
from seiton.domain.subscription import FEATURE_FINANCE, PLANS, can_create_task, has_feature_access
from seiton.infrastructure.db.models import User

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])

# Templates
templates_dir = Path(__file__).parent.parent.parent.parent / "templates"
templates = Jinja2Templates(directory=str(templates_dir))

GENERIC_ERROR = "Something went wrong. Please try again."


def render(request: Request, name: str, context: dict | None = None, status_code: int = 200) -> HTMLResponse:
    """Render a page with the flash messages queued for it."""
    ctx = {
        "user_id": request.session.get("user_id"),
        "flashes": pop_flashes(request),
    }
    ctx.update(context or {})
    return templates.TemplateResponse(request, name, ctx, status_code=status_code)


def _login_redirect() -> RedirectResponse:
    return RedirectResponse("/login", status_code=302)


# === Landing ===

@router.get("/", response_class=HTMLResponse)
def landing(request: Request):
    """Public landing page with the plans"""
    return render(request, "landing.html", {"plans": PLANS})


# === Dashboard ===

@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(request: Request, db: Session = Depends(get_db)):
    if not require_user(request):
        return _login_redirect()

    user_id = request.session["user_id"]
    view = DashboardService(db).build(user_id, local_today())
    return render(request, "dashboard.html", view)


# === Planner ===

def _parse_day(value: str | None) -> date:
    if value:
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
    return local_today()


@router.get("/planner", response_class=HTMLResponse)
def planner(request: Request, day: str | None = None, db: Session = Depends(get_db)):
    if not require_user(request):
        return _login_redirect()

    user_id = request.session["user_id"]
    selected = _parse_day(day)
    profile = ProfileService(db).get_profile(user_id)
    tasks = list_tasks_for_date(db, user_id, selected)

    return render(request, "planner.html", {
        "profile": profile,
        "selected_day": selected,
        "prev_day": selected - timedelta(days=1),
        "next_day": selected + timedelta(days=1),
        "today": local_today(),
        "tasks": tasks,
        "upcoming": upcoming_tasks(db, user_id, local_today()),
        "task_check": can_create_task(profile, local_now(), limit=get_settings().BASIC_PLAN_TASK_LIMIT),
    })


@router.post("/planner/tasks")
def planner_create_task(
    request: Request,
    title: str = Form(""),
    task_date: str = Form(""),
    db: Session = Depends(get_db),
):
    if not require_user(request):
        return _login_redirect()

    user_id = request.session["user_id"]
    day = _parse_day(task_date)
    try:
        CreateTaskUseCase(db).execute(
            account_id=user_id,
            title=title,
            task_date=day,
            actor_user_id=user_id,
        )
        flash(request, "Task added")
    except (TaskValidationError, PlanLimitError) as e:
        flash(request, str(e), "error")
    except Exception:
        db.rollback()
        logger.exception("Failed to create task for user_id=%s", user_id)
        flash(request, GENERIC_ERROR, "error")

    return RedirectResponse(f"/planner?day={day.isoformat()}", status_code=302)


@router.post("/planner/tasks/{task_id}/toggle")
def planner_toggle_task(
    request: Request,
    task_id: int,
    day: str = Form(""),
    db: Session = Depends(get_db),
):
    if not require_user(request):
        return _login_redirect()

    user_id = request.session["user_id"]
    try:
        result = ToggleTaskUseCase(db).execute(account_id=user_id, task_id=task_id, actor_user_id=user_id)
        if result.completed:
            flash(request, "Task completed! Points added")
        else:
            flash(request, "Task reopened. Points removed", "info")
        for achievement_id in result.unlocked_achievements:
            achievement = ACHIEVEMENTS_BY_ID[achievement_id]
            flash(request, f"Achievement unlocked: {achievement.title} (+{achievement.points} pts)")
    except TaskValidationError as e:
        flash(request, str(e), "error")
    except Exception:
        db.rollback()
        logger.exception("Failed to toggle task_id=%s for user_id=%s", task_id, user_id)
        flash(request, GENERIC_ERROR, "error")

    return RedirectResponse(f"/planner?day={_parse_day(day).isoformat()}", status_code=302)


# === Finance (premium) ===

def _finance_allowed(request: Request, db: Session) -> bool:
    profile = ProfileService(db).get_profile(request.session["user_id"])
    if has_feature_access(profile, FEATURE_FINANCE, local_now()):
        return True
    flash(request, "Finance is available on the Premium plan.", "info")
    return False


@router.get("/finance", response_class=HTMLResponse)
def finance(request: Request, db: Session = Depends(get_db)):
    if not require_user(request):
        return _login_redirect()
    if not _finance_allowed(request, db):
        return RedirectResponse("/settings#plans", status_code=302)

    user_id = request.session["user_id"]
    items = list_inventory(db, user_id)
    return render(request, "finance.html", {
        "transactions": list_transactions(db, user_id),
        "totals": get_totals(db, user_id),
        "series": get_monthly_series(db, user_id, local_today()),
        "items": items,
        "low_stock_count": count_low_stock(items),
        "units": UNITS,
        "today": local_today(),
    })


@router.post("/finance/transactions")
def finance_create_transaction(
    request: Request,
    tx_type: str = Form(...),
    amount: str = Form(""),
    description: str = Form(""),
    category: str = Form(""),
    db: Session = Depends(get_db),
):
    if not require_user(request):
        return _login_redirect()
    if not _finance_allowed(request, db):
        return RedirectResponse("/settings#plans", status_code=302)

    user_id = request.session["user_id"]
    try:
        CreateTransactionUseCase(db).execute(
            account_id=user_id,
            tx_type=tx_type,
            amount=amount,
            description=description,
            category=category,
            actor_user_id=user_id,
        )
        flash(request, "Transaction saved")
    except TransactionValidationError as e:
        flash(request, str(e), "error")
    except Exception:
        db.rollback()
        logger.exception("Failed to create transaction for user_id=%s", user_id)
        flash(request, GENERIC_ERROR, "error")

    return RedirectResponse("/finance", status_code=302)


@router.post("/finance/inventory")
def finance_create_inventory_item(
    request: Request,
    name: str = Form(""),
    quantity: str = Form(""),
    unit: str = Form("kg"),
    min_quantity: str = Form(""),
    db: Session = Depends(get_db),
):
    if not require_user(request):
        return _login_redirect()
    if not _finance_allowed(request, db):
        return RedirectResponse("/settings#plans", status_code=302)

    user_id = request.session["user_id"]
    try:
        CreateInventoryItemUseCase(db).execute(
            account_id=user_id,
            name=name,
            quantity=quantity,
            unit=unit,
            min_quantity=min_quantity,
            actor_user_id=user_id,
        )
        flash(request, "Item added to inventory")
    except InventoryValidationError as e:
        flash(request, str(e), "error")
    except Exception:
        db.rollback()
        logger.exception("Failed to create inventory item for user_id=%s", user_id)
        flash(request, GENERIC_ERROR, "error")

    return RedirectResponse("/finance#inventory", status_code=302)


# === Rewards ===

@router.get("/rewards", response_class=HTMLResponse)
def rewards(request: Request, db: Session = Depends(get_db)):
    if not require_user(request):
        return _login_redirect()

    view = RewardsService(db).build(request.session["user_id"])
    return render(request, "rewards.html", view)


# === Settings ===

@router.get("/settings", response_class=HTMLResponse)
def settings_page(request: Request, db: Session = Depends(get_db)):
    if not require_user(request):
        return _login_redirect()

    user_id = request.session["user_id"]
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        request.session.clear()
        return _login_redirect()

    profile = ProfileService(db).get_profile(user_id)
    return render(request, "settings.html", {
        "user": user,
        "profile": profile,
        "progress": level_progress(profile.total_points),
        "plan_view": build_plan_view(profile, local_now()),
    })


@router.post("/settings/profile")
def settings_update_profile(
    request: Request,
    display_name: str = Form(""),
    phone: str = Form(""),
    address: str = Form(""),
    city: str = Form(""),
    state: str = Form(""),
    zip_code: str = Form(""),
    db: Session = Depends(get_db),
):
    if not require_user(request):
        return _login_redirect()

    user_id = request.session["user_id"]
    # The settings form always posts every field; blank ones are cleared
    changes = {
        "display_name": display_name,
        "phone": phone,
        "address": address,
        "city": city,
        "state": state,
        "zip_code": zip_code,
    }
    try:
        UpdateProfileDataUseCase(db).execute(user_id, actor_user_id=user_id, **changes)
        flash(request, "Profile updated")
    except ProfileValidationError as e:
        flash(request, str(e), "error")
    except Exception:
        db.rollback()
        logger.exception("Failed to update profile for user_id=%s", user_id)
        flash(request, GENERIC_ERROR, "error")

    return RedirectResponse("/settings", status_code=302)


@router.post("/settings/email")
def settings_change_email(
    request: Request,
    current_password: str = Form(""),
    new_email: str = Form(""),
    db: Session = Depends(get_db),
):
    if not require_user(request):
        return _login_redirect()

    user_id = request.session["user_id"]
    try:
        AuthService(db).change_email(user_id, current_password, new_email)
        flash(request, "Email updated")
    except AuthError as e:
        flash(request, str(e), "error")
    except Exception:
        db.rollback()
        logger.exception("Failed to change email for user_id=%s", user_id)
        flash(request, GENERIC_ERROR, "error")

    return RedirectResponse("/settings#security", status_code=302)


@router.post("/settings/password")
def settings_change_password(
    request: Request,
    current_password: str = Form(""),
    new_password: str = Form(""),
    confirm_password: str = Form(""),
    db: Session = Depends(get_db),
):
    if not require_user(request):
        return _login_redirect()

    user_id = request.session["user_id"]
    try:
        AuthService(db).change_password(user_id, current_password, new_password, confirm_password)
        flash(request, "Password updated")
    except AuthError as e:
        flash(request, str(e), "error")
    except Exception:
        db.rollback()
        logger.exception("Failed to change password for user_id=%s", user_id)
        flash(request, GENERIC_ERROR, "error")

    return RedirectResponse("/settings#security", status_code=302)


@router.post("/settings/plan")
def settings_change_plan(
    request: Request,
    plan: str = Form(""),
    months: str = Form("1"),
    db: Session = Depends(get_db),
):
    if not require_user(request):
        return _login_redirect()

    user_id = request.session["user_id"]
    try:
        profile = ChangePlanUseCase(db).execute(user_id, plan, months=parse_months(months), actor_user_id=user_id)
        flash(request, f"Plan changed to {build_plan_view(profile)['current_plan_name']}")
    except SubscriptionValidationError as e:
        flash(request, str(e), "error")
    except Exception:
        db.rollback()
        logger.exception("Failed to change plan for user_id=%s", user_id)
        flash(request, GENERIC_ERROR, "error")

    return RedirectResponse("/settings#plans", status_code=302)
