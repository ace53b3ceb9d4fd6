from .client import Client
from .email_log import EmailLog
from .payment import Payment
