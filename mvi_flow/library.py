"""Static catalog of reusable context packs offered next to the MVI flow."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Tuple

from .errors import PackNotFoundError
from .schemas import ContextPack, PackDetail, PackRequirements

logger = logging.getLogger(__name__)

CATEGORIES: List[str] = ["payments", "auth", "communication", "analytics", "ui"]

DEFAULT_REQUIREMENTS = PackRequirements(node=">=16.0.0", npm=">=7.0.0", frameworks=["React 18+", "Express 4+"])


@dataclass(frozen=True)
class PackRecord:
    """Catalog entry plus the detail-only fields shown on the pack page."""

    summary: ContextPack
    version: str
    long_description: str
    reviews: int
    updated_days_ago: int
    features: Tuple[str, ...]
    files: Tuple[str, ...]
    setup_steps: Tuple[str, ...]
    author: str = "DevbrainAI Team"

    def detail(self, now: datetime) -> PackDetail:
        return PackDetail(
            id=self.summary.id,
            name=self.summary.name,
            version=self.version,
            description=self.long_description,
            rating=self.summary.rating,
            reviews=self.reviews,
            downloads=self.summary.downloads,
            last_updated=now - timedelta(days=self.updated_days_ago),
            author=self.author,
            tech_requirements=DEFAULT_REQUIREMENTS,
            features=list(self.features),
            files=list(self.files),
            setup_steps=list(self.setup_steps),
        )


PACKS: Dict[str, PackRecord] = {
    "stripe-checkout": PackRecord(
        summary=ContextPack(
            id="stripe-checkout",
            name="Stripe Checkout Optimization",
            description="Complete payment integration with optimized checkout flow",
            category="payments",
            rating=4.9,
            downloads=1247,
            setup_time="2 hours",
            tech_stack=["React", "Node.js", "Stripe"],
            included=[
                "Optimized checkout forms",
                "Mobile-responsive design",
                "Webhook processing",
                "Error handling",
                "Test suite",
            ],
        ),
        version="2.1.0",
        long_description="Production-ready Stripe integration with optimized checkout",
        reviews=312,
        updated_days_ago=7,
        features=(
            "One-click checkout",
            "Multiple payment methods",
            "Subscription support",
            "Invoice generation",
            "Refund handling",
        ),
        files=(
            "src/components/CheckoutForm.jsx",
            "src/services/PaymentService.js",
            "backend/routes/payments.js",
            "backend/webhooks/stripe.js",
            "tests/payment.test.js",
        ),
        setup_steps=(
            "Install dependencies",
            "Configure Stripe keys",
            "Run migrations",
            "Test with Stripe CLI",
            "Deploy webhooks",
        ),
    ),
    "auth-flow": PackRecord(
        summary=ContextPack(
            id="auth-flow",
            name="Authentication Flow",
            description="Complete user authentication with JWT",
            category="auth",
            rating=4.8,
            downloads=892,
            setup_time="1.5 hours",
            tech_stack=["React", "Node.js", "JWT"],
            included=[
                "Login/Register forms",
                "JWT token management",
                "Password reset flow",
                "Social auth ready",
                "Security best practices",
            ],
        ),
        version="1.4.0",
        long_description="Drop-in registration, login and password reset backed by JWT sessions",
        reviews=205,
        updated_days_ago=14,
        features=("Email/password login", "JWT refresh tokens", "Password reset emails", "Protected routes"),
        files=(
            "src/components/LoginForm.jsx",
            "src/components/RegisterForm.jsx",
            "src/services/AuthService.js",
            "backend/routes/auth.js",
            "backend/middleware/requireAuth.js",
            "tests/auth.test.js",
        ),
        setup_steps=("Install dependencies", "Set JWT_SECRET", "Run migrations", "Wire protected routes"),
    ),
    "email-automation": PackRecord(
        summary=ContextPack(
            id="email-automation",
            name="Email Automation System",
            description="Automated email campaigns and transactional emails",
            category="communication",
            rating=4.7,
            downloads=634,
            setup_time="3 hours",
            tech_stack=["Node.js", "SendGrid", "React"],
            included=[
                "Email templates",
                "Campaign automation",
                "Transactional emails",
                "Analytics tracking",
                "Unsubscribe management",
            ],
        ),
        version="1.2.3",
        long_description="Transactional and campaign email on SendGrid with reusable templates",
        reviews=148,
        updated_days_ago=30,
        features=("Template library", "Scheduled campaigns", "Delivery analytics", "Unsubscribe handling"),
        files=(
            "backend/services/EmailService.js",
            "backend/templates/welcome.html",
            "backend/jobs/campaigns.js",
            "tests/email.test.js",
        ),
        setup_steps=("Install dependencies", "Configure SENDGRID_API_KEY", "Verify sender domain", "Schedule jobs"),
    ),
}


def list_features() -> List[ContextPack]:
    """Return every catalog entry in display order."""

    return [record.summary for record in PACKS.values()]


def _record(pack_id: str) -> PackRecord:
    try:
        return PACKS[pack_id]
    except KeyError as exc:
        raise PackNotFoundError(pack_id) from exc


def get_pack(pack_id: str) -> PackDetail:
    return _record(pack_id).detail(datetime.now(timezone.utc))


def add_to_project(session_id: str, pack_id: str) -> List[str]:
    """Return the files a pack contributes to the session's project."""

    record = _record(pack_id)
    logger.info("Added pack %s to session %s", pack_id, session_id)
    return list(record.files)
