"""billing schema

Revision ID: 0001_billing
Revises:
Create Date: 2026-10-17

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision = "0001_billing"
down_revision = None
branch_labels = None
depends_on = None

ENUMS = [
    ("invoicetype", "SUBSCRIPTION", "CASE_BILLING", "PAYMENT_PLAN", "TIME_BASED", "HYBRID", "ADJUSTMENT", "LATE_FEE"),
    (
        "invoicestatus",
        "DRAFT",
        "PENDING_REVIEW",
        "APPROVED",
        "SENT",
        "VIEWED",
        "PAID",
        "PARTIAL_PAID",
        "OVERDUE",
        "DISPUTED",
        "CANCELLED",
        "REFUNDED",
    ),
    ("paymentterms", "IMMEDIATE", "DAYS_7", "DAYS_15", "DAYS_30", "DAYS_45", "DAYS_60", "CUSTOM"),
    (
        "lineitemtype",
        "SUBSCRIPTION_FEE",
        "CASE_FEE",
        "SUCCESS_FEE",
        "TIME_ENTRY",
        "EXPENSE",
        "DISCOUNT",
        "TAX",
        "ADJUSTMENT",
        "LATE_FEE",
        "SERVICE_FEE",
    ),
    ("billingmethod", "HOURLY", "FIXED", "PERCENTAGE", "HYBRID"),
    ("billingcycle", "MONTHLY", "QUARTERLY", "YEARLY"),
    ("subscriptionstatus", "ACTIVE", "PAUSED", "CANCELLED", "EXPIRED"),
    ("paymentfrequency", "WEEKLY", "BIWEEKLY", "MONTHLY", "QUARTERLY"),
    ("paymentplanstatus", "DRAFT", "ACTIVE", "COMPLETED", "CANCELLED", "DEFAULTED"),
    ("timeentrytype", "CASE_WORK", "SUBSCRIPTION_WORK", "ADMINISTRATIVE"),
    ("timeentrystatus", "DRAFT", "SUBMITTED", "APPROVED", "REJECTED", "BILLED"),
    ("expensestatus", "PENDING", "APPROVED", "REJECTED"),
    ("discounttype", "PERCENTAGE", "FIXED"),
    ("discountscope", "ALL", "CASE_BILLING", "SUBSCRIPTION", "PAYMENT_PLAN"),
    ("generationtype", "MANUAL", "SCHEDULED", "TRIGGERED", "BATCH"),
    ("generationlogstatus", "RUNNING", "COMPLETED", "FAILED", "CANCELLED"),
]


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(name=name, create_type=False)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False)


def _firm_fk() -> sa.Column:
    return sa.Column("law_firm_id", sa.Integer(), sa.ForeignKey("law_firms.id", ondelete="CASCADE"), nullable=False)


def upgrade() -> None:
    # ENUMs: create only if not exists (safe for re-run after partial deploy)
    for row in ENUMS:
        name, *values = row
        vals = ", ".join(f"'{v}'" for v in values)
        op.execute(
            f"DO $$ BEGIN CREATE TYPE {name} AS ENUM ({vals}); "
            "EXCEPTION WHEN duplicate_object THEN NULL; END $$"
        )

    op.create_table(
        "law_firms",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        _created_at(),
    )

    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), primary_key=True),
        _firm_fk(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=254), nullable=True),
        sa.Column("cpf", sa.String(length=14), nullable=True),
        sa.Column("cnpj", sa.String(length=18), nullable=True),
        _created_at(),
    )
    op.create_index("ix_clients_law_firm_id", "clients", ["law_firm_id"])

    op.create_table(
        "matters",
        sa.Column("id", sa.Integer(), primary_key=True),
        _firm_fk(),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("case_type", sa.String(length=60), nullable=True),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="active"),
        _created_at(),
    )
    op.create_index("ix_matters_law_firm_id", "matters", ["law_firm_id"])
    op.create_index("ix_matters_client_id", "matters", ["client_id"])

    op.create_table(
        "subscription_plans",
        sa.Column("id", sa.Integer(), primary_key=True),
        _firm_fk(),
        sa.Column("plan_name", sa.String(length=120), nullable=False),
        sa.Column("monthly_fee", sa.Numeric(14, 2), nullable=False),
        sa.Column("billing_cycle", _enum("billingcycle"), nullable=False, server_default="MONTHLY"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
    )
    op.create_index("ix_subscription_plans_law_firm_id", "subscription_plans", ["law_firm_id"])

    op.create_table(
        "service_inclusions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "subscription_plan_id",
            sa.Integer(),
            sa.ForeignKey("subscription_plans.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("service_type", sa.String(length=60), nullable=False),
        sa.Column("quantity_included", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("unit", sa.String(length=30), nullable=False, server_default="unidades"),
        sa.Column("overage_rate", sa.Numeric(14, 2), nullable=False, server_default="0"),
    )
    op.create_index("ix_service_inclusions_subscription_plan_id", "service_inclusions", ["subscription_plan_id"])

    op.create_table(
        "client_subscriptions",
        sa.Column("id", sa.Integer(), primary_key=True),
        _firm_fk(),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False),
        sa.Column("subscription_plan_id", sa.Integer(), sa.ForeignKey("subscription_plans.id"), nullable=False),
        sa.Column("status", _enum("subscriptionstatus"), nullable=False, server_default="ACTIVE"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("auto_renew", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
    )
    op.create_index("ix_client_subscriptions_law_firm_id", "client_subscriptions", ["law_firm_id"])
    op.create_index("ix_client_subscriptions_client_id", "client_subscriptions", ["client_id"])
    op.create_index("ix_client_subscriptions_subscription_plan_id", "client_subscriptions", ["subscription_plan_id"])
    op.create_index("ix_client_subscriptions_status", "client_subscriptions", ["status"])
    op.create_index("ix_client_subscriptions_start_date", "client_subscriptions", ["start_date"])

    op.create_table(
        "case_billing",
        sa.Column("id", sa.Integer(), primary_key=True),
        _firm_fk(),
        sa.Column("matter_id", sa.Integer(), sa.ForeignKey("matters.id", ondelete="CASCADE"), nullable=False),
        sa.Column("billing_method", _enum("billingmethod"), nullable=False),
        sa.Column("hourly_rate", sa.Numeric(14, 2), nullable=True),
        sa.Column("fixed_fee", sa.Numeric(14, 2), nullable=True),
        sa.Column("percentage_rate", sa.Numeric(6, 2), nullable=True),
        sa.Column("minimum_fee", sa.Numeric(14, 2), nullable=True),
        sa.Column("payment_terms", _enum("paymentterms"), nullable=False, server_default="DAYS_30"),
        sa.Column("allows_payment_plan", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
    )
    op.create_index("ix_case_billing_law_firm_id", "case_billing", ["law_firm_id"])
    op.create_index("ix_case_billing_matter_id", "case_billing", ["matter_id"], unique=True)

    op.create_table(
        "case_outcomes",
        sa.Column("id", sa.Integer(), primary_key=True),
        _firm_fk(),
        sa.Column("matter_id", sa.Integer(), sa.ForeignKey("matters.id", ondelete="CASCADE"), nullable=False),
        sa.Column("outcome_type", sa.String(length=40), nullable=False, server_default="settlement"),
        sa.Column("amount_recovered", sa.Numeric(14, 2), nullable=True),
        sa.Column("success_fee", sa.Numeric(14, 2), nullable=True),
        sa.Column("outcome_date", sa.Date(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_case_outcomes_law_firm_id", "case_outcomes", ["law_firm_id"])
    op.create_index("ix_case_outcomes_matter_id", "case_outcomes", ["matter_id"], unique=True)

    op.create_table(
        "case_expenses",
        sa.Column("id", sa.Integer(), primary_key=True),
        _firm_fk(),
        sa.Column("matter_id", sa.Integer(), sa.ForeignKey("matters.id", ondelete="CASCADE"), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("expense_date", sa.Date(), nullable=False),
        sa.Column("is_reimbursable", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("status", _enum("expensestatus"), nullable=False, server_default="PENDING"),
        _created_at(),
    )
    op.create_index("ix_case_expenses_law_firm_id", "case_expenses", ["law_firm_id"])
    op.create_index("ix_case_expenses_matter_id", "case_expenses", ["matter_id"])
    op.create_index("ix_case_expenses_expense_date", "case_expenses", ["expense_date"])
    op.create_index("ix_case_expenses_status", "case_expenses", ["status"])

    op.create_table(
        "time_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        _firm_fk(),
        sa.Column("entry_type", _enum("timeentrytype"), nullable=False),
        sa.Column("entry_status", _enum("timeentrystatus"), nullable=False, server_default="DRAFT"),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("matter_id", sa.Integer(), sa.ForeignKey("matters.id", ondelete="SET NULL"), nullable=True),
        sa.Column(
            "client_subscription_id",
            sa.Integer(),
            sa.ForeignKey("client_subscriptions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("task_category", sa.String(length=60), nullable=True),
        sa.Column("subscription_service_type", sa.String(length=60), nullable=True),
        sa.Column("activity_description", sa.Text(), nullable=False, server_default=""),
        sa.Column("effective_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_billable", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("billable_rate", sa.Numeric(14, 2), nullable=True),
        _created_at(),
    )
    op.create_index("ix_time_entries_law_firm_id", "time_entries", ["law_firm_id"])
    op.create_index("ix_time_entries_entry_type", "time_entries", ["entry_type"])
    op.create_index("ix_time_entries_entry_status", "time_entries", ["entry_status"])
    op.create_index("ix_time_entries_entry_date", "time_entries", ["entry_date"])
    op.create_index("ix_time_entries_matter_id", "time_entries", ["matter_id"])
    op.create_index("ix_time_entries_client_subscription_id", "time_entries", ["client_subscription_id"])

    op.create_table(
        "discount_rules",
        sa.Column("id", sa.Integer(), primary_key=True),
        _firm_fk(),
        sa.Column("rule_name", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("applies_to", _enum("discountscope"), nullable=False, server_default="ALL"),
        sa.Column("discount_type", _enum("discounttype"), nullable=False),
        sa.Column("value", sa.Numeric(14, 2), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="CASCADE"), nullable=True),
        sa.Column("matter_id", sa.Integer(), sa.ForeignKey("matters.id", ondelete="CASCADE"), nullable=True),
        sa.Column("valid_from", sa.Date(), nullable=True),
        sa.Column("valid_until", sa.Date(), nullable=True),
        sa.Column("minimum_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("max_discount_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("max_uses", sa.Integer(), nullable=True),
        sa.Column("current_uses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("auto_apply", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        _created_at(),
    )
    op.create_index("ix_discount_rules_law_firm_id", "discount_rules", ["law_firm_id"])
    op.create_index("ix_discount_rules_applies_to", "discount_rules", ["applies_to"])
    op.create_index("ix_discount_rules_client_id", "discount_rules", ["client_id"])
    op.create_index("ix_discount_rules_matter_id", "discount_rules", ["matter_id"])
    op.create_index("ix_discount_rules_is_active", "discount_rules", ["is_active"])

    op.create_table(
        "payment_plans",
        sa.Column("id", sa.Integer(), primary_key=True),
        _firm_fk(),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False),
        sa.Column("matter_id", sa.Integer(), sa.ForeignKey("matters.id", ondelete="SET NULL"), nullable=True),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("installments", sa.Integer(), nullable=False),
        sa.Column("installment_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("frequency", _enum("paymentfrequency"), nullable=False, server_default="MONTHLY"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("next_payment_date", sa.Date(), nullable=True),
        sa.Column("status", _enum("paymentplanstatus"), nullable=False, server_default="ACTIVE"),
        sa.Column("late_fee_rate", sa.Numeric(6, 2), nullable=False, server_default="0"),
        sa.Column("grace_period_days", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("auto_generate_invoices", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        _created_at(),
    )
    op.create_index("ix_payment_plans_law_firm_id", "payment_plans", ["law_firm_id"])
    op.create_index("ix_payment_plans_client_id", "payment_plans", ["client_id"])
    op.create_index("ix_payment_plans_matter_id", "payment_plans", ["matter_id"])
    op.create_index("ix_payment_plans_next_payment_date", "payment_plans", ["next_payment_date"])
    op.create_index("ix_payment_plans_status", "payment_plans", ["status"])

    op.create_table(
        "invoices",
        sa.Column("id", sa.Integer(), primary_key=True),
        _firm_fk(),
        sa.Column("client_id", sa.Integer(), sa.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False),
        sa.Column("invoice_number", sa.String(length=40), nullable=True),
        sa.Column("invoice_type", _enum("invoicetype"), nullable=False),
        sa.Column("invoice_status", _enum("invoicestatus"), nullable=False, server_default="DRAFT"),
        sa.Column("subtotal", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("discount_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("tax_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="BRL"),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=False),
        sa.Column("sent_date", sa.Date(), nullable=True),
        sa.Column("paid_date", sa.Date(), nullable=True),
        sa.Column("payment_terms", _enum("paymentterms"), nullable=False, server_default="DAYS_30"),
        sa.Column("payment_methods", sa.JSON(), nullable=True),
        sa.Column(
            "client_subscription_id",
            sa.Integer(),
            sa.ForeignKey("client_subscriptions.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("matter_id", sa.Integer(), sa.ForeignKey("matters.id", ondelete="SET NULL"), nullable=True),
        sa.Column("payment_plan_id", sa.Integer(), sa.ForeignKey("payment_plans.id", ondelete="SET NULL"), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("applied_discounts", sa.JSON(), nullable=True),
        _created_at(),
    )
    op.create_index("ix_invoices_invoice_number", "invoices", ["invoice_number"], unique=True)
    op.create_index("ix_invoices_law_firm_id", "invoices", ["law_firm_id"])
    op.create_index("ix_invoices_client_id", "invoices", ["client_id"])
    op.create_index("ix_invoices_invoice_type", "invoices", ["invoice_type"])
    op.create_index("ix_invoices_invoice_status", "invoices", ["invoice_status"])
    op.create_index("ix_invoices_issue_date", "invoices", ["issue_date"])
    op.create_index("ix_invoices_due_date", "invoices", ["due_date"])
    op.create_index("ix_invoices_client_subscription_id", "invoices", ["client_subscription_id"])
    op.create_index("ix_invoices_matter_id", "invoices", ["matter_id"])
    op.create_index("ix_invoices_payment_plan_id", "invoices", ["payment_plan_id"])

    op.create_table(
        "invoice_line_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        _firm_fk(),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        sa.Column("line_type", _enum("lineitemtype"), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("quantity", sa.Numeric(12, 4), nullable=False, server_default="1"),
        sa.Column("unit_price", sa.Numeric(14, 2), nullable=False),
        sa.Column("line_total", sa.Numeric(14, 2), nullable=False),
        sa.Column("time_entry_id", sa.Integer(), sa.ForeignKey("time_entries.id", ondelete="SET NULL"), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_taxable", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    op.create_index("ix_invoice_line_items_law_firm_id", "invoice_line_items", ["law_firm_id"])
    op.create_index("ix_invoice_line_items_invoice_id", "invoice_line_items", ["invoice_id"])
    op.create_index("ix_invoice_line_items_time_entry_id", "invoice_line_items", ["time_entry_id"])

    op.create_table(
        "subscription_invoices",
        sa.Column("id", sa.Integer(), primary_key=True),
        _firm_fk(),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column(
            "client_subscription_id",
            sa.Integer(),
            sa.ForeignKey("client_subscriptions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("billing_period_start", sa.Date(), nullable=False),
        sa.Column("billing_period_end", sa.Date(), nullable=False),
        sa.Column("billing_cycle", _enum("billingcycle"), nullable=False),
        sa.Column("services_included", sa.JSON(), nullable=True),
        sa.Column("services_used", sa.JSON(), nullable=True),
        sa.Column("overage_charges", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("is_prorated", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("proration_factor", sa.Numeric(8, 6), nullable=False, server_default="1"),
        sa.Column("proration_reason", sa.String(length=200), nullable=True),
        sa.Column("auto_renew", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("next_billing_date", sa.Date(), nullable=True),
        sa.UniqueConstraint(
            "client_subscription_id",
            "billing_period_start",
            "billing_period_end",
            name="uq_subscription_invoice_period",
        ),
    )
    op.create_index("ix_subscription_invoices_law_firm_id", "subscription_invoices", ["law_firm_id"])
    op.create_index("ix_subscription_invoices_client_subscription_id", "subscription_invoices", ["client_subscription_id"])

    op.create_table(
        "case_invoices",
        sa.Column("id", sa.Integer(), primary_key=True),
        _firm_fk(),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("matter_id", sa.Integer(), sa.ForeignKey("matters.id", ondelete="CASCADE"), nullable=False),
        sa.Column("case_billing_id", sa.Integer(), sa.ForeignKey("case_billing.id", ondelete="SET NULL"), nullable=True),
        sa.Column("billing_method", _enum("billingmethod"), nullable=False),
        sa.Column("total_hours", sa.Numeric(10, 4), nullable=False, server_default="0"),
        sa.Column("billable_hours", sa.Numeric(10, 4), nullable=False, server_default="0"),
        sa.Column("hourly_rate", sa.Numeric(14, 2), nullable=True),
        sa.Column("time_charges", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("fixed_fee", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("recovery_amount", sa.Numeric(14, 2), nullable=True),
        sa.Column("percentage_rate", sa.Numeric(6, 2), nullable=True),
        sa.Column("percentage_fee", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("success_fee", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("case_expenses", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("reimbursable_expenses", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("minimum_fee", sa.Numeric(14, 2), nullable=True),
        sa.Column("minimum_fee_applied", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_final_invoice", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("allows_payment_plan", sa.Boolean(), nullable=False, server_default=sa.text("true")),
    )
    op.create_index("ix_case_invoices_law_firm_id", "case_invoices", ["law_firm_id"])
    op.create_index("ix_case_invoices_matter_id", "case_invoices", ["matter_id"])

    op.create_table(
        "payment_plan_invoices",
        sa.Column("id", sa.Integer(), primary_key=True),
        _firm_fk(),
        sa.Column("invoice_id", sa.Integer(), sa.ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("payment_plan_id", sa.Integer(), sa.ForeignKey("payment_plans.id", ondelete="CASCADE"), nullable=False),
        sa.Column("installment_number", sa.Integer(), nullable=False),
        sa.Column("total_installments", sa.Integer(), nullable=False),
        sa.Column("installment_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("scheduled_date", sa.Date(), nullable=False),
        sa.Column("grace_period_days", sa.Integer(), nullable=False, server_default="5"),
        sa.Column("late_fee_rate", sa.Numeric(6, 2), nullable=False, server_default="0"),
        sa.Column("late_fee_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("is_final_installment", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("auto_generate_next", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.UniqueConstraint("payment_plan_id", "installment_number", name="uq_payment_plan_installment"),
    )
    op.create_index("ix_payment_plan_invoices_law_firm_id", "payment_plan_invoices", ["law_firm_id"])
    op.create_index("ix_payment_plan_invoices_payment_plan_id", "payment_plan_invoices", ["payment_plan_id"])

    op.create_table(
        "invoice_generation_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        _firm_fk(),
        sa.Column("generation_type", _enum("generationtype"), nullable=False),
        sa.Column("invoice_type", sa.String(length=32), nullable=False),
        sa.Column("batch_id", sa.Uuid(), nullable=True),
        sa.Column("total_invoices_generated", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("successful_generations", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("failed_generations", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("period_start", sa.Date(), nullable=True),
        sa.Column("period_end", sa.Date(), nullable=True),
        sa.Column("generated_invoice_ids", sa.JSON(), nullable=True),
        sa.Column("error_messages", sa.JSON(), nullable=True),
        sa.Column("status", _enum("generationlogstatus"), nullable=False, server_default="COMPLETED"),
        sa.Column("started_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_invoice_generation_logs_law_firm_id", "invoice_generation_logs", ["law_firm_id"])
    op.create_index("ix_invoice_generation_logs_generation_type", "invoice_generation_logs", ["generation_type"])
    op.create_index("ix_invoice_generation_logs_invoice_type", "invoice_generation_logs", ["invoice_type"])
    op.create_index("ix_invoice_generation_logs_batch_id", "invoice_generation_logs", ["batch_id"])


def downgrade() -> None:
    for table in (
        "invoice_generation_logs",
        "payment_plan_invoices",
        "case_invoices",
        "subscription_invoices",
        "invoice_line_items",
        "invoices",
        "payment_plans",
        "discount_rules",
        "time_entries",
        "case_expenses",
        "case_outcomes",
        "case_billing",
        "client_subscriptions",
        "service_inclusions",
        "subscription_plans",
        "matters",
        "clients",
        "law_firms",
    ):
        op.drop_table(table)
    for name, *_ in reversed(ENUMS):
        op.execute(f"DROP TYPE IF EXISTS {name}")
