"""
Seed Data Script - Creates the bootstrap admin and a sample department
Run: python -m scripts.seed_data
"""
from tadbeer.config.settings import settings
from tadbeer.domain.enums import UserRole, UserStatus
from tadbeer.domain.models import ActorContext
from tadbeer.repositories.mongo_client import create_indexes
from tadbeer.repositories.user_repo import UserRepository
from tadbeer.repositories.department_repo import DepartmentRepository
from tadbeer.services.user_service import UserService
from tadbeer.services.department_service import DepartmentService


SAMPLE_DEPARTMENT = "IT Support"


def create_bootstrap_admin():
    """Create the admin account from settings if it does not exist yet"""
    users = UserRepository()
    existing = users.get_by_email(settings.bootstrap_email)
    if existing:
        print(f"Admin already exists: {existing.email} ({existing.user_id})")
        return existing

    admin = UserService().build_user(
        name=settings.bootstrap_name,
        email=settings.bootstrap_email,
        password=settings.bootstrap_password,
        role=UserRole.ADMIN,
        status=UserStatus.AVAILABLE
    )
    users.create_user(admin)
    print(f"Created admin: {admin.email} ({admin.user_id})")
    return admin


def create_sample_department(admin):
    """Create an empty IT Support department"""
    departments = DepartmentRepository()
    if any(d.name == SAMPLE_DEPARTMENT for d in departments.list_departments()):
        print(f"Department '{SAMPLE_DEPARTMENT}' already exists. Skipping.")
        return

    actor = ActorContext(user_id=admin.user_id, role=admin.role)
    department = DepartmentService().create_department(actor, {
        "name": SAMPLE_DEPARTMENT,
        "description": "First-line technical support",
    })
    print(f"Created department: {department.name} ({department.department_id})")


def main():
    print("Creating indexes...")
    create_indexes()

    admin = create_bootstrap_admin()
    create_sample_department(admin)

    print("\nSeed complete!")
    print(f"  Login: {settings.bootstrap_email}")


if __name__ == "__main__":
    main()
