import sys
import psycopg2
from powdercoat.core.security import hash_password
from powdercoat.core.config import settings
from powdercoat.core.enums import UserRole
from urllib.parse import urlparse

def create_admin_user(email: str, password: str, full_name: str | None = None) -> bool:
    try:
        db_url = urlparse(settings.DATABASE_URL.replace("postgresql+asyncpg://", "postgresql://"))
        
        conn = psycopg2.connect(
            host=db_url.hostname or "localhost",
            port=db_url.port or 5432,
            user=db_url.username or "postgres",
            password=db_url.password or "postgres",
            database=db_url.path.lstrip("/") or "postgres"
        )
        
        cursor = conn.cursor()
        
        cursor.execute("SELECT id FROM users WHERE email = %s", (email,))
        existing_user = cursor.fetchone()
        
        if existing_user:
            print(f"Error: User '{email}' already exists")
            cursor.close()
            conn.close()
            return False
        
        cursor.execute(
            "INSERT INTO users (email, password_hash, full_name, role, created_at) "
            "VALUES (%s, %s, %s, %s, now()) RETURNING id",
            (email, hash_password(password), full_name, UserRole.ADMIN.value)
        )
        
        user_id = cursor.fetchone()[0]
        conn.commit()
        
        print(f"Admin user '{email}' created successfully")
        print(f"User ID: {user_id}")
        print("Role: admin")
        
        cursor.close()
        conn.close()
        return True
        
    except Exception as e:
        print(f"Error creating admin user: {str(e)}")
        return False


def main():
    if len(sys.argv) < 3:
        print("Usage: python create_admin.py <email> <password> [full name]")
        sys.exit(1)
    
    email = sys.argv[1].strip().lower()
    password = sys.argv[2]
    full_name = " ".join(sys.argv[3:]) or None
    
    if not email or not password:
        print("Error: email and password cannot be empty")
        sys.exit(1)
    
    success = create_admin_user(email, password, full_name)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
