from honeycert.models.admin import Admin, AdminRole
from honeycert.models.confirmation import AdminConfirmation
from honeycert.models.otp import AdminOTP, OTPPurpose
from honeycert.models.tenant_user import TenantSQLModel, BeeUser
