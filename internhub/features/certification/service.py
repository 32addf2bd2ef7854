"""Completion & certification gate.

Eligibility is a pure function of the enrollment, the internship's pass mark
and the sum of active task points. It holds no state of its own and is
recomputed on every read.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session

from internhub.common.utils import percentage
from internhub.features.catalog.models import Internship
from internhub.features.catalog.repository import CatalogRepository
from internhub.features.enrollments.models import Enrollment


@dataclass(frozen=True)
class CertificateStanding:
    final_score: int
    max_points: int
    percentage: float
    pass_percentage: int
    is_completed: bool
    certificate_purchased: bool

    @property
    def passed(self) -> bool:
        return meets_pass_mark(self.final_score, self.max_points, self.pass_percentage)

    @property
    def eligible(self) -> bool:
        return is_eligible(
            self.is_completed,
            self.final_score,
            self.max_points,
            self.pass_percentage,
            self.certificate_purchased,
        )

    def ineligibility_reason(self) -> str | None:
        if self.certificate_purchased:
            return "Certificate already purchased for this enrollment"
        if not self.is_completed:
            return "Complete all tasks first to purchase certificate"
        if not self.passed:
            return (
                f"You scored {round(self.percentage)}%. "
                f"Need {self.pass_percentage}% to purchase certificate"
            )
        return None


def meets_pass_mark(final_score: int, max_points: int, pass_percentage: int) -> bool:
    """Integer form of ``percentage >= pass_percentage``."""
    return max_points > 0 and final_score * 100 >= pass_percentage * max_points


def is_eligible(
    is_completed: bool,
    final_score: int,
    max_points: int,
    pass_percentage: int,
    certificate_purchased: bool,
) -> bool:
    if not is_completed or certificate_purchased:
        return False
    return meets_pass_mark(final_score, max_points, pass_percentage)


def certificate_standing(db: Session, enrollment: Enrollment, internship: Internship | None = None) -> CertificateStanding:
    internship = internship or enrollment.internship
    max_points = CatalogRepository.max_points(db, enrollment.internship_id)
    return CertificateStanding(
        final_score=enrollment.final_score or 0,
        max_points=max_points,
        percentage=percentage(enrollment.final_score or 0, max_points),
        pass_percentage=internship.pass_percentage,
        is_completed=bool(enrollment.is_completed),
        certificate_purchased=bool(enrollment.certificate_purchased),
    )


def is_eligible_for_certificate(db: Session, enrollment: Enrollment) -> bool:
    return certificate_standing(db, enrollment).eligible
