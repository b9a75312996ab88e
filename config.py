import os

DATABASE_URL = os.getenv("DATABASE_URL", "").replace("postgres://", "postgresql://", 1)
SQLALCHEMY_DATABASE_URI = DATABASE_URL

SECRET_KEY = os.getenv("SECRET_KEY")

# Blob storage for meal plan images, nutritionist certificates and profile pictures
BLOB_STORAGE_DIR = os.getenv("BLOB_STORAGE_DIR", os.path.join(os.getcwd(), "blob_storage"))
BLOB_BASE_URL = os.getenv("BLOB_BASE_URL", "/files")
MAX_CONTENT_LENGTH = 20 * 1024 * 1024

# Time zone used when rendering audit log timestamps for admins without one set
DISPLAY_TIME_ZONE = os.getenv("DISPLAY_TIME_ZONE", "Asia/Singapore")
