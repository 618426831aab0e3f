from hotelos.notification.email_channel import EmailChannel

__all__ = ['EmailChannel']
