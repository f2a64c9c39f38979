# achievement_tracker/core/firebase.py
import firebase_admin
from firebase_admin import credentials, storage
import logging

from achievement_tracker.config import settings

logger = logging.getLogger(__name__)

def initialize_firebase():
    """Initialize the Firebase Admin SDK once per process"""
    if firebase_admin._apps:
        return firebase_admin.get_app()

    try:
        cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS_PATH)
        app = firebase_admin.initialize_app(cred, {
            'storageBucket': settings.FIREBASE_STORAGE_BUCKET
        })
        logger.info("Firebase Admin SDK initialized successfully")
        return app
    except Exception as e:
        logger.error(f"Failed to initialize Firebase: {str(e)}")
        raise

def get_storage_bucket():
    initialize_firebase()
    return storage.bucket()
