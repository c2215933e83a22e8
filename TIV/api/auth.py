from fastapi import APIRouter, Depends, Response

from packages.tiv_auth.gate import AdminGate, CallerContext, TokenAdminGate
from packages.tiv_core.config import TIVConfig
from packages.tiv_core.errors import ConfigurationError
from TIV.api.dependencies import AUTH_COOKIE, get_admin_gate, get_caller, get_config
from TIV.api.schemas import AuthCheckResponse, LoginRequest, LoginResponse, SuccessResponse

router = APIRouter(prefix="/auth", tags=["Auth"])


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    response: Response,
    gate: AdminGate = Depends(get_admin_gate),
    config: TIVConfig = Depends(get_config),
):
    """
    Exchange the admin password for a token.
    The token is returned in the body and set as an httpOnly cookie.
    """
    if not isinstance(gate, TokenAdminGate):
        raise ConfigurationError("Configured admin gate does not support password login")
    token, expires_at = gate.login(body.password)
    response.set_cookie(
        AUTH_COOKIE,
        token,
        httponly=True,
        secure=config.BASE_URL.startswith("https"),
        samesite="lax",
        max_age=config.TOKEN_TTL_MINUTES * 60,
    )
    return LoginResponse(success=True, token=token, expires_at=expires_at)


@router.post("/logout", response_model=SuccessResponse)
def logout(
    response: Response,
    caller: CallerContext = Depends(get_caller),
    gate: AdminGate = Depends(get_admin_gate),
):
    if isinstance(gate, TokenAdminGate):
        gate.logout(caller.token)
    response.delete_cookie(AUTH_COOKIE)
    return SuccessResponse()


@router.get("/check", response_model=AuthCheckResponse)
def check(
    caller: CallerContext = Depends(get_caller),
    gate: AdminGate = Depends(get_admin_gate),
):
    return AuthCheckResponse(authenticated=gate.is_admin(caller))
