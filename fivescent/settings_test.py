from .settings import *  # noqa: F401,F403

DEBUG = False

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

ALLOWED_HOSTS = ['testserver']

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

MIDTRANS_SERVER_KEY = ''
MIDTRANS_VERIFY_SIGNATURE = False
