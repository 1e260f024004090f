"""
Create a test user (uses DATABASE_URL from the environment or .env)
"""
from seiton.auth import AuthError, AuthService
from seiton.config import get_settings
from seiton.infrastructure.db.session import Backend

EMAIL = "test@example.com"
PASSWORD = "password123"

backend = Backend(get_settings())
backend.start()
db = backend.session()

try:
    user = AuthService(db).sign_up(EMAIL, PASSWORD)
    print("Created user:")
    print(f"  Email: {EMAIL}")
    print(f"  Password: {PASSWORD}")
    print(f"  ID: {user.id}")
except AuthError as e:
    print(f"Not created: {e}")
finally:
    db.close()
    backend.dispose()
