"""Payment domain schemas - Pydantic models for validation"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


class PaymentBase(BaseModel):
    """Fields shared by every kind of payment"""

    appointmentId: Optional[int] = None
    clientId: Optional[int] = None
    clientName: Optional[str] = None
    # Sign is checked by the ledger so a negative amount fails as a ledger ValidationError
    amount: Decimal
    paymentMethod: Optional[str] = None
    sessionDate: datetime
    location: Optional[str] = None

    @property
    def is_package(self) -> bool:
        return False

    @property
    def is_prepayment(self) -> bool:
        return False

    @property
    def is_partial(self) -> bool:
        return False

    @property
    def requested_package_sessions(self) -> Optional[int]:
        return getattr(self, "packageSessions", None)

    @property
    def requested_sessions_paid(self) -> Optional[int]:
        return getattr(self, "sessionsPaid", None)


def check_sessions_paid(sessions_paid: Optional[int], package_sessions: Optional[int]) -> None:
    if sessions_paid is not None and package_sessions is not None and sessions_paid > package_sessions:
        raise ValueError("sessionsPaid cannot exceed packageSessions")


class FullPayment(PaymentBase):
    """A simple, non-package appointment paid in full"""

    kind: Literal["full"] = "full"


class PackagePrepayment(PaymentBase):
    """A whole multi-session package paid up front"""

    kind: Literal["package_prepayment"] = "package_prepayment"
    packageSessions: int = Field(ge=1)
    sessionsPaid: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def validate_sessions_paid(self) -> "PackagePrepayment":
        check_sessions_paid(self.sessionsPaid, self.packageSessions)
        return self

    @property
    def is_package(self) -> bool:
        return True

    @property
    def is_prepayment(self) -> bool:
        return True


class SinglePackageSessionPayment(PaymentBase):
    """One session of an existing package"""

    kind: Literal["package_session"] = "package_session"
    packageSessions: Optional[int] = Field(default=None, ge=1)
    # Sessions paid on the package after this payment (not an increment)
    sessionsPaid: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def validate_sessions_paid(self) -> "SinglePackageSessionPayment":
        check_sessions_paid(self.sessionsPaid, self.packageSessions)
        return self

    @property
    def is_package(self) -> bool:
        return True


class PartialPayment(PaymentBase):
    """A payment smaller than what is owed; accumulates into amountPaid"""

    kind: Literal["partial"] = "partial"
    isPackage: bool = False
    isPrepayment: bool = False
    packageSessions: Optional[int] = Field(default=None, ge=1)

    @property
    def is_package(self) -> bool:
        return self.isPackage

    @property
    def is_prepayment(self) -> bool:
        return self.isPrepayment

    @property
    def is_partial(self) -> bool:
        return True


PaymentRequest = Annotated[
    Union[FullPayment, PackagePrepayment, SinglePackageSessionPayment, PartialPayment],
    Field(discriminator="kind"),
]


class LegacyPaymentRequest(BaseModel):
    """Flat payment payload as sent by the scheduler front end"""

    appointmentId: Optional[int] = None
    clientId: Optional[int] = None
    clientName: Optional[str] = None
    amount: Decimal = Decimal("0")
    paymentMethod: Optional[str] = None
    isPackage: bool = False
    isPrepayment: bool = False
    isPartial: bool = False
    packageSessions: Optional[int] = None
    sessionsPaid: Optional[int] = None
    sessionDate: datetime
    location: Optional[str] = None

    @field_validator("packageSessions")
    @classmethod
    def validate_package_sessions(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("packageSessions must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_prepayment_sessions(self) -> "LegacyPaymentRequest":
        # Without an appointment there is no stored package size to fall back on
        if self.is_package_prepayment and self.packageSessions is None and self.appointmentId is None:
            raise ValueError("packageSessions is required for a package prepayment")
        if self.isPackage:
            check_sessions_paid(self.sessionsPaid, self.packageSessions)
        return self

    @property
    def is_package_prepayment(self) -> bool:
        return self.isPackage and self.isPrepayment and not self.isPartial

    def to_variant(self, package_sessions: Optional[int] = None) -> PaymentBase:
        """
        Map the flag combination onto the matching tagged payment.

        `package_sessions` fills in a package size the payload left out.
        """
        if package_sessions is None:
            package_sessions = self.packageSessions
        common = {
            "appointmentId": self.appointmentId,
            "clientId": self.clientId,
            "clientName": self.clientName,
            "amount": self.amount,
            "paymentMethod": self.paymentMethod,
            "sessionDate": self.sessionDate,
            "location": self.location,
        }
        if self.isPartial:
            return PartialPayment(
                isPackage=self.isPackage,
                isPrepayment=self.isPrepayment,
                packageSessions=package_sessions,
                **common,
            )
        if self.isPackage and self.isPrepayment:
            return PackagePrepayment(
                packageSessions=package_sessions, sessionsPaid=self.sessionsPaid, **common
            )
        if self.isPackage:
            return SinglePackageSessionPayment(
                packageSessions=package_sessions, sessionsPaid=self.sessionsPaid, **common
            )
        return FullPayment(**common)


class PaymentResult(BaseModel):
    """Outcome of Record Payment; failures are reported, not raised"""

    success: bool
    paymentId: Optional[int] = None
    error: Optional[str] = None
    code: Optional[str] = None


class PaymentResponse(BaseModel):
    id: int
    appointmentId: Optional[int]
    clientId: Optional[int]
    clientName: Optional[str]
    kind: str
    amount: Decimal
    paymentMethod: Optional[str]
    paymentStatus: str
    isPackage: bool
    isPrepayment: bool
    isPartial: bool
    packageSessions: Optional[int]
    sessionsPaid: Optional[int]
    sessionDate: datetime
    location: Optional[str]
    createdAt: Optional[datetime]

    @classmethod
    def from_model(cls, payment) -> "PaymentResponse":
        return cls(
            id=payment.id,
            appointmentId=payment.appointment_id,
            clientId=payment.client_id,
            clientName=payment.client_name,
            kind=payment.kind,
            amount=payment.amount,
            paymentMethod=payment.payment_method,
            paymentStatus=payment.payment_status,
            isPackage=payment.is_package,
            isPrepayment=payment.is_prepayment,
            isPartial=payment.is_partial,
            packageSessions=payment.package_sessions,
            sessionsPaid=payment.sessions_paid,
            sessionDate=payment.session_date,
            location=payment.location,
            createdAt=payment.created_at,
        )


class RefundRequest(BaseModel):
    originalPaymentId: int
    refundAmount: Decimal
    reason: Optional[str] = None


class RefundResult(BaseModel):
    success: bool
    refundId: Optional[int] = None
    error: Optional[str] = None
    code: Optional[str] = None


class RefundResponse(BaseModel):
    id: int
    originalPaymentId: int
    refundAmount: Decimal
    reason: Optional[str]
    refundDate: Optional[datetime]
    status: str

    @classmethod
    def from_model(cls, refund) -> "RefundResponse":
        return cls(
            id=refund.id,
            originalPaymentId=refund.original_payment_id,
            refundAmount=refund.refund_amount,
            reason=refund.reason,
            refundDate=refund.refund_date,
            status=refund.status,
        )


class AmountValidationRequest(BaseModel):
    # Accept raw input so non-numeric text is reported as invalid rather than rejected by the schema
    amount: Union[Decimal, str, None] = None


class AmountValidationResponse(BaseModel):
    valid: bool
    error: Optional[str] = None


class PackageProgressResponse(BaseModel):
    appointmentId: int
    progress: float
