"""Users app package.

Custom email-based user model with the four platform roles (client,
staff, admin, dev), account activation, password reset codes and the
newsletter list. Use ``apps.users.models.CustomUser`` as AUTH_USER_MODEL.
"""
