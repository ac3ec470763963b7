"""Projects, line items, bids and the event outbox

Revision ID: 001
Revises: None
Create Date: 2026-10-17

Creates: projects, project_items, bids, project_transitions, event_outbox
Enums: projectstatus, projecttransitiontype, bidstatus, eventstatus
"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto";')

    # ── 1. Create enum types (stored by member name) ─────────────────────
    op.execute("""
        CREATE TYPE projectstatus AS ENUM (
            'DRAFT', 'PUBLISHED', 'IN_BIDDING', 'BID_SELECTED',
            'IN_PROGRESS', 'DELIVERED', 'COMPLETED', 'CANCELLED'
        );
    """)
    op.execute("""
        CREATE TYPE projecttransitiontype AS ENUM (
            'PUBLISH', 'OPEN_BIDDING', 'SELECT_BID', 'START_EXECUTION',
            'DELIVER', 'ACCEPT_DELIVERY', 'REJECT_DELIVERY', 'CANCEL'
        );
    """)
    op.execute("""
        CREATE TYPE bidstatus AS ENUM (
            'PENDING', 'ACCEPTED', 'REJECTED', 'WITHDRAWN'
        );
    """)
    op.execute("""
        CREATE TYPE eventstatus AS ENUM (
            'PENDING', 'PROCESSING', 'COMPLETED', 'FAILED'
        );
    """)

    # ── 2. projects ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE projects (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            customer_id UUID NOT NULL,
            title VARCHAR(255),
            description TEXT,
            status projectstatus NOT NULL DEFAULT 'DRAFT',
            baseline_total NUMERIC(14, 2) NOT NULL DEFAULT 0,
            requested_days INTEGER,
            currency VARCHAR(3) NOT NULL DEFAULT 'SAR',
            assigned_vendor_id UUID,
            accepted_bid_id UUID,
            agreed_price NUMERIC(14, 2),
            accepted_days INTEGER,
            started_at TIMESTAMPTZ,
            expected_end_at TIMESTAMPTZ,
            delivery_note TEXT,
            delivery_files JSONB NOT NULL DEFAULT '[]',
            delivered_at TIMESTAMPTZ,
            delivery_rejection_reason TEXT,
            delivery_rejected_at TIMESTAMPTZ,
            commission_percent NUMERIC(5, 2),
            platform_commission NUMERIC(14, 2),
            vendor_earnings NUMERIC(14, 2),
            completed_at TIMESTAMPTZ,
            vendor_rating SMALLINT,
            vendor_rating_comment TEXT,
            rated_at TIMESTAMPTZ,
            cancelled_at TIMESTAMPTZ,
            cancellation_reason TEXT,
            version INTEGER NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT ck_projects_vendor_rating_range
                CHECK (vendor_rating IS NULL OR vendor_rating BETWEEN 1 AND 5),
            CONSTRAINT ck_projects_requested_days_positive
                CHECK (requested_days IS NULL OR requested_days >= 1)
        );
    """)
    op.execute("CREATE INDEX ix_projects_customer_id ON projects (customer_id);")
    op.execute("CREATE INDEX ix_projects_status ON projects (status);")
    op.execute("""
        CREATE INDEX ix_projects_assigned_vendor_id ON projects (assigned_vendor_id)
        WHERE assigned_vendor_id IS NOT NULL;
    """)

    # ── 3. project_items ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE project_items (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            project_id UUID NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            position INTEGER NOT NULL,
            is_main BOOLEAN NOT NULL DEFAULT false,
            product_type VARCHAR(100) NOT NULL,
            subtype VARCHAR(100),
            material VARCHAR(100),
            color VARCHAR(100),
            width NUMERIC(12, 3) NOT NULL DEFAULT 0,
            height NUMERIC(12, 3) NOT NULL DEFAULT 0,
            length NUMERIC(12, 3) NOT NULL DEFAULT 0,
            quantity INTEGER NOT NULL DEFAULT 1,
            selected_accessories JSONB NOT NULL DEFAULT '[]',
            description TEXT,
            custom_details JSONB,
            is_freeform BOOLEAN NOT NULL DEFAULT false,
            price_per_unit NUMERIC(14, 2) NOT NULL DEFAULT 0,
            measure NUMERIC(16, 4) NOT NULL DEFAULT 0,
            accessory_cost NUMERIC(14, 2) NOT NULL DEFAULT 0,
            accessories JSONB NOT NULL DEFAULT '[]',
            total NUMERIC(14, 2) NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT uq_project_items_project_position UNIQUE (project_id, position)
        );
    """)
    op.execute("CREATE INDEX ix_project_items_project_id ON project_items (project_id);")

    # ── 4. bids ──────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE bids (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            project_id UUID NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            vendor_id UUID NOT NULL,
            price NUMERIC(14, 2) NOT NULL,
            days INTEGER NOT NULL,
            message TEXT,
            status bidstatus NOT NULL DEFAULT 'PENDING',
            revision INTEGER NOT NULL DEFAULT 1,
            decided_at TIMESTAMPTZ,
            withdrawn_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            CONSTRAINT ck_bids_price_non_negative CHECK (price >= 0),
            CONSTRAINT ck_bids_days_positive CHECK (days >= 1)
        );
    """)
    op.execute("CREATE INDEX ix_bids_project_id ON bids (project_id);")
    op.execute("CREATE INDEX ix_bids_vendor_id ON bids (vendor_id);")
    op.execute("""
        CREATE UNIQUE INDEX uq_bids_project_vendor_pending ON bids (project_id, vendor_id)
        WHERE status = 'PENDING';
    """)
    op.execute("""
        ALTER TABLE projects ADD CONSTRAINT fk_projects_accepted_bid_id_bids
        FOREIGN KEY (accepted_bid_id) REFERENCES bids(id) ON DELETE SET NULL;
    """)

    # ── 5. project_transitions (append-only) ─────────────────────────────
    op.execute("""
        CREATE TABLE project_transitions (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            project_id UUID NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            from_status projectstatus NOT NULL,
            to_status projectstatus NOT NULL,
            transition_type projecttransitiontype NOT NULL,
            triggered_by UUID,
            trigger_source VARCHAR(20) NOT NULL DEFAULT 'user',
            reason TEXT,
            metadata_extra JSONB NOT NULL DEFAULT '{}',
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_project_transitions_project_id ON project_transitions (project_id);")
    op.execute("CREATE INDEX ix_project_transitions_to_status ON project_transitions (to_status);")

    # ── 6. event_outbox ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE event_outbox (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            event_type VARCHAR(100) NOT NULL,
            aggregate_type VARCHAR(50) NOT NULL,
            aggregate_id VARCHAR(64) NOT NULL,
            payload JSONB NOT NULL DEFAULT '{}',
            request_id VARCHAR(64),
            status eventstatus NOT NULL DEFAULT 'PENDING',
            attempts INTEGER NOT NULL DEFAULT 0,
            last_error TEXT,
            processed_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)
    op.execute("CREATE INDEX ix_event_outbox_aggregate ON event_outbox (aggregate_type, aggregate_id);")
    op.execute("""
        CREATE INDEX ix_event_outbox_pending ON event_outbox (created_at)
        WHERE status = 'PENDING';
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS event_outbox CASCADE;")
    op.execute("DROP TABLE IF EXISTS project_transitions CASCADE;")
    op.execute("ALTER TABLE projects DROP CONSTRAINT IF EXISTS fk_projects_accepted_bid_id_bids;")
    op.execute("DROP TABLE IF EXISTS bids CASCADE;")
    op.execute("DROP TABLE IF EXISTS project_items CASCADE;")
    op.execute("DROP TABLE IF EXISTS projects CASCADE;")
    op.execute("DROP TYPE IF EXISTS eventstatus;")
    op.execute("DROP TYPE IF EXISTS bidstatus;")
    op.execute("DROP TYPE IF EXISTS projecttransitiontype;")
    op.execute("DROP TYPE IF EXISTS projectstatus;")
