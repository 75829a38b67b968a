"""
Tenant provisioning for admin registration

Registering an admin creates state in two places: rows in the global schema
(admin, confirmation token) and a whole tenant schema holding the bootstrap
user. Each step commits on its own, so a failure part way through is undone by
compensating actions run in reverse order of completion. Cleanup failures are
logged and never replace the error that triggered the rollback.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Tuple

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
import structlog

from honeycert.core.config import Settings
from honeycert.core.database import TenantDatabase, ping
from honeycert.core.dates import utc_now
from honeycert.core.exceptions import (
    ConnectivityError,
    DeliveryError,
    RequestValidationFailed,
    UnverifiedPhoneError,
)
from honeycert.core.security import hash_password
from honeycert.models.admin import Admin, AdminRole
from honeycert.models.confirmation import AdminConfirmation
from honeycert.models.otp import AdminOTP
from honeycert.models.tenant_user import BeeUser
from honeycert.schemas.registration import AdminRegistrationRequest
from honeycert.services.confirmation import issue_confirmation_token
from honeycert.services.mail import MailTransport, send_confirmation_email
from honeycert.services.phone_verification import find_verified_code
from honeycert.services.schema_manager import SchemaManager
from honeycert.services.structure import StructureApplier
from honeycert.services.validation import (
    generate_schema_name,
    normalize_phone,
    validate_registration,
)

logger = structlog.get_logger(__name__)

Compensation = Tuple[str, Callable[[], Awaitable[None]]]


@dataclass(frozen=True)
class TenantUserRef:
    """Two-part key of a user living in a tenant schema"""
    schema_name: str
    user_id: int


@dataclass
class SchemaSettings:
    name: str
    display_name: str
    description: str
    max_users: int
    max_storage: float


@dataclass
class ProvisioningResult:
    admin: Admin
    admin_user: BeeUser
    registration_method: str
    schema: SchemaSettings
    confirmation: Optional[AdminConfirmation] = None
    email_sent: Optional[bool] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def requires_confirmation(self) -> bool:
        return self.registration_method == "email"

    @property
    def admin_user_ref(self) -> TenantUserRef:
        return TenantUserRef(self.schema.name, self.admin_user.id)


class TenantProvisioner:
    """Registers an admin and provisions their tenant schema"""

    def __init__(
        self,
        session: AsyncSession,
        schema_manager: SchemaManager,
        structure_applier: StructureApplier,
        tenant_db: TenantDatabase,
        mail_transport: MailTransport,
        settings: Settings,
    ):
        self.session = session
        self.schema_manager = schema_manager
        self.structure_applier = structure_applier
        self.tenant_db = tenant_db
        self.mail_transport = mail_transport
        self.settings = settings

    async def check_connectivity(self) -> None:
        if not await ping(self.session):
            raise ConnectivityError()

    def resolve_schema_settings(self, request: AdminRegistrationRequest) -> SchemaSettings:
        """Fix the schema name and its metadata; the name never changes afterwards"""
        requested = request.namespace
        firstname, lastname = request.firstname.strip(), request.lastname.strip()
        name = (requested.name if requested and requested.name else None) or generate_schema_name(
            firstname, lastname
        )
        return SchemaSettings(
            name=name,
            display_name=(requested and requested.display_name) or f"{firstname} {lastname}'s Workspace",
            description=(requested and requested.description) or f"Workspace managed by {firstname} {lastname}",
            max_users=(requested and requested.max_users) or self.settings.DEFAULT_MAX_USERS,
            max_storage=(requested and requested.max_storage) or self.settings.DEFAULT_MAX_STORAGE,
        )

    async def provision(self, request: AdminRegistrationRequest) -> ProvisioningResult:
        # Validation and phone checks happen before anything is written
        reason = validate_registration(request, self.settings.admin_codes)
        if reason:
            raise RequestValidationFailed(reason)

        method = request.registration_method
        phone = normalize_phone(request.phonenumber) if request.phonenumber else None

        verified_code: Optional[AdminOTP] = None
        if method == "phone":
            verified_code = await find_verified_code(
                self.session, phone, self.settings.PHONE_VERIFICATION_WINDOW_MINUTES
            )
            if verified_code is None:
                logger.info(f"Rejecting registration for unverified phone ending {phone[-4:]}")
                raise UnverifiedPhoneError()

        firstname, lastname = request.firstname.strip(), request.lastname.strip()
        email = request.email.strip().lower() if method == "email" else f"{phone}@phone.local"
        schema = self.resolve_schema_settings(request)
        password_hash = await asyncio.to_thread(hash_password, request.password)

        logger.info("Starting admin registration", method=method, schema_name=schema.name)

        compensations: List[Compensation] = []
        confirmation: Optional[AdminConfirmation] = None
        try:
            # Step 1: admin in the global schema
            admin = Admin(
                firstname=firstname,
                lastname=lastname,
                email=email,
                phonenumber=phone,
                password=password_hash,
                role=AdminRole(request.role).value,
                schema_name=schema.name,
                display_name=schema.display_name,
                description=schema.description,
                max_users=schema.max_users,
                max_storage=schema.max_storage,
                is_active=False,
            )
            self.session.add(admin)
            await self.session.commit()
            await self.session.refresh(admin)
            admin_id = admin.id
            compensations.append(("delete admin", lambda: self._delete_admin(admin_id)))
            compensations.append(("delete verification codes", lambda: self._delete_codes(admin_id)))
            logger.info(f"Admin created in global schema with ID: {admin_id}")

            # Step 2: confirmation token (email only)
            if method == "email":
                confirmation = await issue_confirmation_token(
                    self.session, admin_id, self.settings.CONFIRMATION_TOKEN_TTL_HOURS
                )
                confirmation_id = confirmation.id
                compensations.append(
                    ("delete confirmation token", lambda: self._delete_confirmation(confirmation_id))
                )
                logger.info("Confirmation token created")

            # Step 3: the tenant schema itself
            await self.schema_manager.create(schema.name)
            compensations.append(("drop schema", lambda: self.schema_manager.drop(schema.name)))

            # Step 4: tenant tables
            await self.structure_applier.apply(schema.name)

            # Step 5: bootstrap user inside the tenant schema
            admin_user = await self._create_admin_user(
                schema.name,
                admin_id,
                firstname=firstname,
                lastname=lastname,
                email=email,
                phonenumber=phone,
                password=password_hash,
                is_confirmed=method == "phone",
            )
            logger.info(f"Admin created as user in schema '{schema.name}' with ID: {admin_user.id}")

            result = ProvisioningResult(
                admin=admin,
                admin_user=admin_user,
                registration_method=method,
                schema=schema,
                confirmation=confirmation,
            )

            # Step 6: confirmation email, never fatal
            if method == "email":
                result.email_sent = await self._send_confirmation(admin, confirmation)
                if not result.email_sent:
                    result.warnings.append(
                        "Confirmation email could not be sent. You can request a new one later."
                    )

            # Step 7: phone registrations are active immediately
            if method == "phone":
                await self._activate_phone_admin(admin, verified_code)

        except Exception as exc:
            logger.error(f"Registration process failed: {exc}", schema_name=schema.name)
            await self._rollback(compensations)
            raise

        logger.info("Admin registration completed", admin_id=admin_id, schema_name=schema.name)
        return result

    async def _create_admin_user(self, schema_name: str, admin_id: int, **fields) -> BeeUser:
        async with self.tenant_db.session(schema_name) as tenant_session:
            admin_user = BeeUser(
                role="admin",
                is_admin=True,
                admin_id=admin_id,
                is_profile_complete=True,
                **fields,
            )
            tenant_session.add(admin_user)
            await tenant_session.commit()
            await tenant_session.refresh(admin_user)
            return admin_user

    async def _send_confirmation(self, admin: Admin, confirmation: AdminConfirmation) -> bool:
        try:
            sent = await send_confirmation_email(
                self.mail_transport,
                to=admin.email,
                admin_name=f"{admin.firstname} {admin.lastname}",
                token=confirmation.token,
                base_url=self.settings.APP_BASE_URL,
                ttl_hours=self.settings.CONFIRMATION_TOKEN_TTL_HOURS,
            )
            if not sent:
                raise DeliveryError(f"transport refused message for admin {admin.id}")
        except Exception as e:
            # delivery never fails the registration
            logger.error(f"Failed to send confirmation email: {e}")
            return False

        return True

    async def _activate_phone_admin(self, admin: Admin, verified_code: AdminOTP) -> None:
        admin.is_active = True
        admin.updated_at = utc_now()
        self.session.add(admin)
        # claim the code that verified this phone
        verified_code.admin_id = admin.id
        self.session.add(verified_code)
        await self.session.commit()
        await self.session.refresh(admin)
        logger.info(f"Phone admin {admin.id} activated")

    async def _delete_admin(self, admin_id: int) -> None:
        admin = await self.session.get(Admin, admin_id)
        if admin is not None:
            await self.session.delete(admin)
            await self.session.commit()

    async def _delete_codes(self, admin_id: int) -> None:
        result = await self.session.exec(select(AdminOTP).where(AdminOTP.admin_id == admin_id))
        for code in result.all():
            await self.session.delete(code)
        await self.session.commit()

    async def _delete_confirmation(self, confirmation_id: int) -> None:
        confirmation = await self.session.get(AdminConfirmation, confirmation_id)
        if confirmation is not None:
            await self.session.delete(confirmation)
            await self.session.commit()

    async def _rollback(self, compensations: List[Compensation]) -> None:
        """Run compensating actions newest first; each failure is logged and skipped"""
        await self._reset_session()
        if not compensations:
            return

        logger.info("Attempting to clean up created resources", steps=len(compensations))
        for description, action in reversed(compensations):
            try:
                await action()
                logger.info(f"Cleanup: {description} completed")
            except Exception as e:
                logger.error(f"Cleanup: {description} failed: {e}")
                await self._reset_session()

    async def _reset_session(self) -> None:
        try:
            await self.session.rollback()
        except Exception as e:
            logger.error(f"Session rollback failed: {e}")
