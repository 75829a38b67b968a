"""
Admin registration, confirmation and session API endpoints
"""

import asyncio
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
import structlog

from honeycert.core.config import Settings, get_settings
from honeycert.core.database import TenantDatabase, get_session, ping
from honeycert.core.dates import utc_now
from honeycert.core.dependencies import get_mail_transport, get_provisioner, get_tenant_db
from honeycert.core.exceptions import RegistrationError, classify_error
from honeycert.core.security import create_admin_token, decode_admin_token, verify_password
from honeycert.models.admin import Admin
from honeycert.models.confirmation import AdminConfirmation
from honeycert.models.tenant_user import BeeUser
from honeycert.schemas.auth import (
    AdminIdentity,
    ConfirmEmailRequest,
    ConfirmEmailResponse,
    LoginData,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ResendConfirmationRequest,
    SchemaInfo,
    VerifyResponse,
)
from honeycert.schemas.registration import (
    AdminRegistrationRequest,
    AdminSummary,
    RegisterAsUserResponse,
    RegistrationData,
    RegistrationResponse,
    TenantUserSummary,
)
from honeycert.services.confirmation import issue_confirmation_token, mark_tenant_admin_confirmed
from honeycert.services.mail import MailTransport, send_confirmation_email
from honeycert.services.provisioning import ProvisioningResult, TenantProvisioner
from honeycert.services.tenant_users import ensure_tenant_admin_user

logger = structlog.get_logger(__name__)
router = APIRouter()

PHONE_EMAIL_DOMAIN = "@phone.local"


def _identity(admin: Admin) -> AdminIdentity:
    return AdminIdentity(
        id=admin.id,
        firstname=admin.firstname,
        lastname=admin.lastname,
        email=admin.email,
        role=admin.role,
        schema_name=admin.schema_name,
    )


def _tenant_user_summary(admin_user: BeeUser) -> TenantUserSummary:
    return TenantUserSummary(
        id=admin_user.id,
        firstname=admin_user.firstname,
        lastname=admin_user.lastname,
        email=admin_user.email,
        role=admin_user.role,
        is_admin=admin_user.is_admin,
        admin_id=admin_user.admin_id,
        created_at=admin_user.created_at,
        is_confirmed=admin_user.is_confirmed,
        is_profile_complete=admin_user.is_profile_complete,
    )


def build_registration_response(result: ProvisioningResult) -> RegistrationResponse:
    admin = result.admin
    summary = AdminSummary(
        id=admin.id,
        firstname=admin.firstname,
        lastname=admin.lastname,
        email=admin.email,
        role=admin.role,
        schema_name=admin.schema_name,
        created_at=admin.created_at,
        is_confirmed=not result.requires_confirmation,
    )

    if result.requires_confirmation:
        return RegistrationResponse(
            requires_confirmation=True,
            registration_method=result.registration_method,
            message=(
                f"Registration successful! Please check your email at {admin.email} for confirmation "
                f"instructions. Your admin account will be activated after email confirmation."
            ),
            data=RegistrationData(admin=summary),
            warning=" ".join(result.warnings) or None,
        )

    return RegistrationResponse(
        requires_confirmation=False,
        registration_method=result.registration_method,
        message=(
            f"Admin account and schema '{admin.schema_name}' created successfully. "
            f"You can now access the admin dashboard."
        ),
        data=RegistrationData(
            admin=summary,
            admin_user=_tenant_user_summary(result.admin_user),
        ),
    )


@router.post(
    "/register",
    response_model=RegistrationResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def register_admin(
    payload: AdminRegistrationRequest,
    provisioner: TenantProvisioner = Depends(get_provisioner),
):
    """Register an admin and provision their tenant schema"""
    await provisioner.check_connectivity()

    try:
        result = await provisioner.provision(payload)
    except RegistrationError:
        raise
    except Exception as e:
        logger.error(f"Admin registration error: {e}")
        raise classify_error(e) from e

    return build_registration_response(result)


@router.post("/confirm-email", response_model=ConfirmEmailResponse)
async def confirm_email(
    payload: ConfirmEmailRequest,
    session: AsyncSession = Depends(get_session),
    tenant_db: TenantDatabase = Depends(get_tenant_db),
):
    """Confirm an admin's email address and activate the account"""
    if not payload.token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No confirmation token provided"
        )

    confirmation = (
        await session.exec(select(AdminConfirmation).where(AdminConfirmation.token == payload.token))
    ).first()
    if not confirmation:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Confirmation token not found or invalid"
        )

    if confirmation.confirmed_at:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="This confirmation link has already been used"
        )

    if confirmation.is_expired():
        raise HTTPException(
            status_code=status.HTTP_410_GONE,
            detail="This confirmation link has expired. Please request a new one."
        )

    admin = await session.get(Admin, confirmation.admin_id)
    if not admin:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Confirmation token not found or invalid"
        )

    now = utc_now()
    confirmation.confirmed_at = now
    admin.is_active = True
    admin.updated_at = now
    session.add(confirmation)
    session.add(admin)
    await session.commit()
    logger.info(f"Email confirmed for admin {admin.id}")

    # The global record is authoritative; the tenant copy is best effort
    try:
        await mark_tenant_admin_confirmed(tenant_db, admin.schema_name, admin.id)
    except Exception as e:
        logger.error(f"Failed to update admin user in schema '{admin.schema_name}': {e}")

    return ConfirmEmailResponse(
        message=(
            f"Welcome {admin.firstname}! Your admin account has been confirmed successfully. "
            f"You can now access the admin dashboard."
        ),
        admin=_identity(admin),
    )


@router.post("/resend-confirmation", response_model=MessageResponse)
async def resend_confirmation(
    payload: ResendConfirmationRequest,
    session: AsyncSession = Depends(get_session),
    mail_transport: MailTransport = Depends(get_mail_transport),
    settings: Settings = Depends(get_settings),
):
    """Issue a new confirmation link for an admin still pending confirmation"""
    if not payload.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email is required"
        )

    email = payload.email.strip().lower()
    admin = (await session.exec(select(Admin).where(Admin.email == email))).first()
    if not admin or admin.email.endswith(PHONE_EMAIL_DOMAIN):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No pending registration found for this email"
        )

    if admin.is_active:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Account is already confirmed"
        )

    pending = await session.exec(
        select(AdminConfirmation).where(
            AdminConfirmation.admin_id == admin.id,
            AdminConfirmation.confirmed_at == None,  # noqa: E711
        )
    )
    for old in pending.all():
        await session.delete(old)

    confirmation = await issue_confirmation_token(session, admin.id, settings.CONFIRMATION_TOKEN_TTL_HOURS)
    sent = await send_confirmation_email(
        mail_transport,
        to=admin.email,
        admin_name=f"{admin.firstname} {admin.lastname}",
        token=confirmation.token,
        base_url=settings.APP_BASE_URL,
        ttl_hours=settings.CONFIRMATION_TOKEN_TTL_HOURS,
    )
    if not sent:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Confirmation email could not be sent. Please try again later."
        )

    logger.info(f"Confirmation link re-sent to admin {admin.id}")
    return MessageResponse(message=f"A new confirmation link has been sent to {admin.email}")


@router.post("/login", response_model=LoginResponse)
async def login_admin(
    payload: LoginRequest,
    response: Response,
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    """Login admin and set the session cookie"""
    if not await ping(session):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database service unavailable. Please try again later."
        )

    if not payload.email or not payload.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email and password are required"
        )

    if "@" not in payload.email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Please enter a valid email address"
        )

    email = payload.email.strip().lower()
    admin = (await session.exec(select(Admin).where(Admin.email == email))).first()

    if not admin or not await asyncio.to_thread(verify_password, payload.password, admin.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    if not admin.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive"
        )

    token = create_admin_token(
        admin_id=admin.id,
        email=admin.email,
        role=admin.role,
        schema_name=admin.schema_name,
        firstname=admin.firstname,
        lastname=admin.lastname,
    )
    response.set_cookie(
        key=settings.ADMIN_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.ENVIRONMENT == "production",
        samesite="lax",
        max_age=int(timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES).total_seconds()),
    )

    logger.info(f"Admin logged in: {admin.id}")
    return LoginResponse(
        message="Login successful",
        data=LoginData(
            token=token,
            admin=_identity(admin),
            schema_info=SchemaInfo(
                name=admin.schema_name,
                display_name=admin.display_name or f"{admin.firstname} {admin.lastname}'s Workspace",
                description=admin.description,
            ),
        ),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout_admin(response: Response, settings: Settings = Depends(get_settings)):
    response.delete_cookie(settings.ADMIN_COOKIE_NAME)
    return MessageResponse(message="Logged out successfully")


def _session_claims(request: Request, settings: Settings) -> dict:
    """Claims of the admin session cookie; 401 when it is missing or invalid"""
    token = request.cookies.get(settings.ADMIN_COOKIE_NAME)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No authentication token found"
        )

    payload = decode_admin_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )
    payload["token"] = token
    return payload


@router.post("/auth/verify", response_model=VerifyResponse)
async def verify_admin_session(request: Request, settings: Settings = Depends(get_settings)):
    """Validate the admin session cookie"""
    payload = _session_claims(request, settings)

    return VerifyResponse(
        token=payload["token"],
        admin=AdminIdentity(
            id=payload["adminId"],
            firstname=payload.get("firstname") or "Admin",
            lastname=payload.get("lastname") or "User",
            email=payload["email"],
            role=payload["role"],
            schema_name=payload["schemaName"],
        ),
    )


@router.post(
    "/register-as-user",
    response_model=RegisterAsUserResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def register_admin_as_user(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_session),
    tenant_db: TenantDatabase = Depends(get_tenant_db),
    settings: Settings = Depends(get_settings),
):
    """Create the signed-in admin's user in their tenant schema if it is missing"""
    claims = _session_claims(request, settings)

    admin = await session.get(Admin, claims["adminId"])
    if not admin:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Admin not found"
        )

    if not admin.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin account is inactive"
        )

    try:
        admin_user, created = await ensure_tenant_admin_user(tenant_db, admin)
    except IntegrityError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists in this schema"
        )
    except Exception as e:
        logger.error(f"Failed to register admin {admin.id} as user in schema '{admin.schema_name}': {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create user"
        )

    if not created:
        response.status_code = status.HTTP_200_OK
        return RegisterAsUserResponse(
            message="Admin is already registered as user",
            user=_tenant_user_summary(admin_user),
        )

    return RegisterAsUserResponse(
        message="Admin registered as user successfully",
        user=_tenant_user_summary(admin_user),
        schema_name=admin.schema_name,
    )
