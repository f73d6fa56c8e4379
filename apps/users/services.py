"""Account helpers used outside the auth endpoints.

The payment webhook creates reservations for visitors who may not have an
account yet. Their password never travels through the payment processor:
an inactive account is created and an activation link is emailed instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore

from .models import AccountActivationToken, CustomUser, NewsletterSubscription

logger = logging.getLogger(__name__)


@dataclass
class AccountResult:
    user: CustomUser
    created: bool = False
    upgraded: bool = False
    activation_token: AccountActivationToken | None = None


def subscribe_to_newsletter(email: str, *, user: CustomUser | None = None, source: str = "") -> NewsletterSubscription:
    subscription, created = NewsletterSubscription.objects.get_or_create(
        email=email.lower(),
        defaults={"user": user, "source": source},
    )
    if not created:
        changed = []
        if not subscription.is_subscribed:
            subscription.is_subscribed = True
            subscription.subscribed_at = timezone.now()
            subscription.unsubscribed_at = None
            changed += ["is_subscribed", "subscribed_at", "unsubscribed_at"]
        if user is not None and subscription.user_id is None:
            subscription.user = user
            changed.append("user")
        if changed:
            subscription.save(update_fields=changed)
    return subscription


def unsubscribe_from_newsletter(email: str) -> bool:
    updated = NewsletterSubscription.objects.filter(email=email.lower(), is_subscribed=True).update(
        is_subscribed=False,
        unsubscribed_at=timezone.now(),
    )
    CustomUser.objects.filter(email__iexact=email).update(newsletter=False)
    return bool(updated)


@transaction.atomic
def get_or_create_client_account(
    email: str,
    *,
    first_name: str = "",
    last_name: str = "",
    phone: str = "",
    company_name: str = "",
    newsletter: bool = False,
) -> AccountResult:
    """Return the account owning ``email``, creating or upgrading it if needed.

    - an existing full account is returned untouched, with a fresh
      activation token when it was never activated
    - a temporary (newsletter only) account is upgraded to an inactive
      client account awaiting activation
    - otherwise a new inactive client account is created

    Any account left inactive receives an activation token; the caller
    sends the email once the surrounding transaction commits.
    """

    email = email.strip().lower()
    user = CustomUser.objects.filter(email__iexact=email).first()

    if user is not None and not user.is_temporary:
        if newsletter:
            subscribe_to_newsletter(email, user=user, source="booking")
            if not user.newsletter:
                user.newsletter = True
                user.save(update_fields=["newsletter"])
        if user.is_active:
            return AccountResult(user=user)
        # activation never completed, the previous link may have expired
        logger.info(f"Activation link issued again for {email}")
        return AccountResult(user=user, activation_token=AccountActivationToken.issue(user))

    result: AccountResult
    if user is not None:
        user.is_temporary = False
        user.is_active = False
        user.first_name = first_name or user.first_name
        user.last_name = last_name or user.last_name
        user.phone = CustomUser.objects.normalize_phone(phone) if phone else user.phone
        user.company_name = company_name or user.company_name
        user.newsletter = user.newsletter or newsletter
        user.save()
        logger.info(f"Temporary account upgraded for {email}")
        result = AccountResult(user=user, upgraded=True)
    else:
        user = CustomUser.objects.create_user(
            email=email,
            password=None,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            company_name=company_name,
            newsletter=newsletter,
            is_active=False,
        )
        logger.info(f"Client account created from payment for {email}")
        result = AccountResult(user=user, created=True)

    if newsletter:
        subscribe_to_newsletter(email, user=user, source="booking")

    result.activation_token = AccountActivationToken.issue(user)
    return result
