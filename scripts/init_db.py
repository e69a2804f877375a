from db.session import engine, Base
from db.models import Job

def init_database():
    print(f"Creating database tables ({Job.__tablename__})...")
    Base.metadata.create_all(bind=engine)
    print("Database initialized successfully")

if __name__ == "__main__":
    init_database()
