from __future__ import annotations

import enum


class InvoiceType(str, enum.Enum):
    SUBSCRIPTION = "subscription"
    CASE_BILLING = "case_billing"
    PAYMENT_PLAN = "payment_plan"
    TIME_BASED = "time_based"
    HYBRID = "hybrid"
    ADJUSTMENT = "adjustment"
    LATE_FEE = "late_fee"


class InvoiceStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    SENT = "sent"
    VIEWED = "viewed"
    PAID = "paid"
    PARTIAL_PAID = "partial_paid"
    OVERDUE = "overdue"
    DISPUTED = "disputed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentTerms(str, enum.Enum):
    IMMEDIATE = "immediate"
    DAYS_7 = "7_days"
    DAYS_15 = "15_days"
    DAYS_30 = "30_days"
    DAYS_45 = "45_days"
    DAYS_60 = "60_days"
    CUSTOM = "custom"


class LineItemType(str, enum.Enum):
    SUBSCRIPTION_FEE = "subscription_fee"
    CASE_FEE = "case_fee"
    SUCCESS_FEE = "success_fee"
    TIME_ENTRY = "time_entry"
    EXPENSE = "expense"
    DISCOUNT = "discount"
    TAX = "tax"
    ADJUSTMENT = "adjustment"
    LATE_FEE = "late_fee"
    SERVICE_FEE = "service_fee"


class BillingMethod(str, enum.Enum):
    HOURLY = "hourly"
    FIXED = "fixed"
    PERCENTAGE = "percentage"  # contingency
    HYBRID = "hybrid"  # hourly + percentage


class BillingCycle(str, enum.Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class SubscriptionStatus(str, enum.Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


class PaymentFrequency(str, enum.Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


class PaymentPlanStatus(str, enum.Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DEFAULTED = "defaulted"


class TimeEntryType(str, enum.Enum):
    CASE_WORK = "case_work"
    SUBSCRIPTION_WORK = "subscription_work"
    ADMINISTRATIVE = "administrative"


class TimeEntryStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    BILLED = "billed"


class ExpenseStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class DiscountScope(str, enum.Enum):
    ALL = "all"
    CASE_BILLING = "case_billing"
    SUBSCRIPTION = "subscription"
    PAYMENT_PLAN = "payment_plan"


class GenerationType(str, enum.Enum):
    MANUAL = "manual"
    SCHEDULED = "scheduled"
    TRIGGERED = "triggered"
    BATCH = "batch"


class GenerationLogStatus(str, enum.Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
