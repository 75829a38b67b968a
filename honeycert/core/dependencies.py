"""
FastAPI dependencies wiring the registration collaborators
"""

from fastapi import Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from honeycert.core.config import Settings, get_settings
from honeycert.core.database import (
    TenantDatabase,
    get_admin_engine,
    get_session,
    get_tenant_database,
)
from honeycert.services.mail import MailTransport, build_mail_transport
from honeycert.services.provisioning import TenantProvisioner
from honeycert.services.schema_manager import PostgresSchemaManager, SchemaManager
from honeycert.services.sms import LogSmsSender, SmsSender
from honeycert.services.structure import AlembicStructureApplier, StructureApplier


def get_schema_manager() -> SchemaManager:
    return PostgresSchemaManager(get_admin_engine())


def get_structure_applier(settings: Settings = Depends(get_settings)) -> StructureApplier:
    return AlembicStructureApplier(
        config_path=settings.TENANT_ALEMBIC_CONFIG,
        database_url=settings.admin_database_url,
        timeout=settings.SCHEMA_APPLY_TIMEOUT_SECONDS,
    )


def get_tenant_db() -> TenantDatabase:
    return get_tenant_database()


def get_mail_transport(settings: Settings = Depends(get_settings)) -> MailTransport:
    return build_mail_transport(settings)


def get_sms_sender(settings: Settings = Depends(get_settings)) -> SmsSender:
    return LogSmsSender(include_body=settings.DEBUG)


def get_provisioner(
    session: AsyncSession = Depends(get_session),
    schema_manager: SchemaManager = Depends(get_schema_manager),
    structure_applier: StructureApplier = Depends(get_structure_applier),
    tenant_db: TenantDatabase = Depends(get_tenant_db),
    mail_transport: MailTransport = Depends(get_mail_transport),
    settings: Settings = Depends(get_settings),
) -> TenantProvisioner:
    return TenantProvisioner(
        session=session,
        schema_manager=schema_manager,
        structure_applier=structure_applier,
        tenant_db=tenant_db,
        mail_transport=mail_transport,
        settings=settings,
    )
