"""
Authentication routes (sign in, sign up, logout)
"""
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from seiton.api.deps import flash, get_db, require_user
from seiton.api.v1.pages import render
from seiton.application.profile import ProfileService
from seiton.auth import AuthError, AuthService


router = APIRouter(tags=["auth"])


@router.get("/login", response_class=HTMLResponse)
def login_get(request: Request, mode: str = "signin"):
    """
    Sign-in / sign-up form
    """
    if require_user(request):
        return RedirectResponse("/dashboard", status_code=302)
    return render(request, "login.html", {"mode": "signup" if mode == "signup" else "signin"})


@router.post("/login", response_class=HTMLResponse)
def login_post(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    db: Session = Depends(get_db),
):
    try:
        user = AuthService(db).sign_in(email, password)
    except AuthError as e:
        return render(
            request, "login.html",
            {"mode": "signin", "error": str(e), "email": email},
            status_code=400,
        )

    request.session["user_id"] = user.id
    return RedirectResponse("/dashboard", status_code=302)


@router.post("/signup", response_class=HTMLResponse)
def signup_post(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    db: Session = Depends(get_db),
):
    try:
        user = AuthService(db).sign_up(email, password)
    except AuthError as e:
        return render(
            request, "login.html",
            {"mode": "signup", "error": str(e), "email": email},
            status_code=400,
        )

    request.session["user_id"] = user.id
    ProfileService(db).get_profile(user.id)
    flash(request, "Welcome to Seiton!")
    return RedirectResponse("/dashboard", status_code=302)


@router.get("/logout")
def logout(request: Request):
    """
    Sign out
    """
    request.session.clear()
    return RedirectResponse("/login", status_code=302)
