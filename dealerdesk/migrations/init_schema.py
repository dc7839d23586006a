"""Database schema initialization.

Contains all CREATE TABLE, CREATE INDEX statements and seed data for the
DealerDesk database.

Called once by database.init_db() at application start.
"""


def create_schema(conn, cursor):
    """Create all database tables, indexes, and seed data.

    Args:
        conn: Database connection (for commit/rollback)
        cursor: Database cursor from get_cursor(conn)
    """
    # ── Roles & users ──
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS roles (
            id SERIAL PRIMARY KEY,
            name TEXT NOT NULL UNIQUE,
            description TEXT,
            can_access_crm BOOLEAN DEFAULT FALSE,
            can_edit_crm BOOLEAN DEFAULT FALSE,
            can_export_crm BOOLEAN DEFAULT FALSE,
            can_access_tracker BOOLEAN DEFAULT FALSE,
            can_access_inventory BOOLEAN DEFAULT FALSE,
            can_access_settings BOOLEAN DEFAULT FALSE,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS users (
            id SERIAL PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            phone TEXT,
            password_hash TEXT,
            role_id INTEGER REFERENCES roles(id),
            manager_id INTEGER REFERENCES users(id) ON DELETE SET NULL,
            is_active BOOLEAN DEFAULT TRUE,
            last_login TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_users_manager ON users(manager_id)')

    # ── Progress tracker ──
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS tracker_snapshots (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            storage_key TEXT NOT NULL,
            payload TEXT NOT NULL,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (user_id, storage_key)
        )
    ''')

    # ── CRM ──
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS crm_customers (
            id SERIAL PRIMARY KEY,
            first_name TEXT,
            last_name TEXT,
            email TEXT UNIQUE,
            phone TEXT,
            company_name TEXT,
            street TEXT,
            city TEXT,
            state TEXT,
            zipcode TEXT,
            source TEXT,
            status TEXT DEFAULT 'new',
            temperature TEXT DEFAULT 'warm',
            priority TEXT DEFAULT 'medium',
            lead_score INTEGER DEFAULT 0,
            days_in_stage INTEGER DEFAULT 0,
            lost_reason TEXT,
            financing_type TEXT,
            rto_approval_status TEXT,
            finance_approval_status TEXT,
            applied BOOLEAN DEFAULT FALSE,
            trailer_type TEXT,
            trailer_size TEXT,
            stock_number TEXT,
            vin TEXT,
            assigned_to_id INTEGER REFERENCES users(id) ON DELETE SET NULL,
            manager_id INTEGER REFERENCES users(id) ON DELETE SET NULL,
            last_contacted_at TIMESTAMP,
            last_activity_at TIMESTAMP,
            next_follow_up_at TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_crm_customers_status ON crm_customers(status)')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_crm_customers_assigned ON crm_customers(assigned_to_id)')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_crm_customers_manager ON crm_customers(manager_id)')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_crm_customers_follow_up ON crm_customers(next_follow_up_at)')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_crm_customers_created ON crm_customers(created_at)')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS crm_activities (
            id SERIAL PRIMARY KEY,
            customer_id INTEGER NOT NULL REFERENCES crm_customers(id) ON DELETE CASCADE,
            user_id INTEGER REFERENCES users(id) ON DELETE SET NULL,
            type TEXT NOT NULL,
            subject TEXT NOT NULL,
            description TEXT,
            details JSONB DEFAULT '{}',
            status TEXT DEFAULT 'pending',
            due_date TIMESTAMP,
            completed_at TIMESTAMP,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_crm_activities_customer ON crm_activities(customer_id, created_at DESC)')

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS crm_saved_views (
            id SERIAL PRIMARY KEY,
            user_id INTEGER REFERENCES users(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            filters JSONB NOT NULL DEFAULT '{}',
            is_global BOOLEAN DEFAULT FALSE,
            is_default BOOLEAN DEFAULT FALSE,
            created_by INTEGER REFERENCES users(id) ON DELETE SET NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    cursor.execute('''
        CREATE UNIQUE INDEX IF NOT EXISTS idx_crm_saved_views_unique_name
        ON crm_saved_views(COALESCE(user_id, 0), name)
    ''')

    # ── Inventory ──
    cursor.execute('''
        CREATE TABLE IF NOT EXISTS inventory_trailers (
            id SERIAL PRIMARY KEY,
            vin TEXT UNIQUE,
            stock_number TEXT NOT NULL UNIQUE,
            manufacturer TEXT,
            model TEXT,
            year INTEGER,
            category TEXT,
            length NUMERIC(6,2),
            width NUMERIC(6,2),
            height NUMERIC(6,2),
            sale_price NUMERIC(12,2),
            cost NUMERIC(12,2),
            status TEXT DEFAULT 'available',
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')
    cursor.execute('CREATE INDEX IF NOT EXISTS idx_inventory_trailers_status ON inventory_trailers(status)')

    # ── Seed roles ──
    cursor.execute('''
        INSERT INTO roles (name, description, can_access_crm, can_edit_crm, can_export_crm,
                           can_access_tracker, can_access_inventory, can_access_settings)
        VALUES
            ('owner', 'Full access, sees every customer', TRUE, TRUE, TRUE, TRUE, TRUE, TRUE),
            ('director', 'Full CRM access, publishes global views', TRUE, TRUE, TRUE, TRUE, TRUE, FALSE),
            ('manager', 'Team pipeline and inventory', TRUE, TRUE, TRUE, TRUE, TRUE, FALSE),
            ('salesperson', 'Own customers and inventory lookups', TRUE, TRUE, FALSE, TRUE, TRUE, FALSE)
        ON CONFLICT (name) DO NOTHING
    ''')

    conn.commit()
