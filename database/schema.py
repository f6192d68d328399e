"""
Database schema definitions.
Table creation, indexes, and structure management.
"""


def drop_tables(db):
    """Drop all existing tables."""
    # Disable foreign key constraints before dropping
    db.execute('PRAGMA foreign_keys = OFF')

    tables = [
        'reservations',
        'work_items',
        'work_categories',
        'works',
        'postcodes',
        'wizard_slots',
        'items',
        'item_categories',
        'users'
    ]

    for table in tables:
        db.execute(f'DROP TABLE IF EXISTS {table}')

    # Re-enable foreign key constraints
    db.execute('PRAGMA foreign_keys = ON')


def create_tables(db):
    """Create all database tables."""

    # 1. Users
    db.execute('''
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT UNIQUE NOT NULL,
            email TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            full_name TEXT,
            phone TEXT,
            role TEXT NOT NULL DEFAULT 'customer',
            active INTEGER DEFAULT 1,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            last_login TEXT
        )
    ''')

    # 2. Catalog
    db.execute('''
        CREATE TABLE item_categories (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT UNIQUE NOT NULL
        )
    ''')

    db.execute('''
        CREATE TABLE items (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            key TEXT UNIQUE NOT NULL,
            name TEXT NOT NULL,
            base_price REAL NOT NULL DEFAULT 0.0,
            unit TEXT,
            image_url TEXT,
            category_id INTEGER REFERENCES item_categories(id),
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # Step 1 slot configuration (one selection grid per row)
    db.execute('''
        CREATE TABLE wizard_slots (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            slot_name TEXT UNIQUE NOT NULL,
            label TEXT NOT NULL,
            category_id INTEGER NOT NULL REFERENCES item_categories(id),
            selection_mode TEXT NOT NULL DEFAULT 'single'
                CHECK (selection_mode IN ('single', 'multi')),
            is_required INTEGER DEFAULT 0,
            is_optional_item INTEGER DEFAULT 0,
            display_order INTEGER DEFAULT 0,
            active INTEGER DEFAULT 1
        )
    ''')

    # Works (curated packages). Id 0 is reserved for the custom package
    db.execute('''
        CREATE TABLE works (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            image_url TEXT,
            notes TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE work_categories (
            work_id INTEGER NOT NULL REFERENCES works(id) ON DELETE CASCADE,
            category_id INTEGER NOT NULL REFERENCES item_categories(id),
            PRIMARY KEY (work_id, category_id)
        )
    ''')

    db.execute('''
        CREATE TABLE work_items (
            work_id INTEGER NOT NULL REFERENCES works(id) ON DELETE CASCADE,
            item_id INTEGER NOT NULL REFERENCES items(id),
            quantity INTEGER NOT NULL DEFAULT 1 CHECK (quantity >= 1),
            is_optional INTEGER NOT NULL DEFAULT 0,
            PRIMARY KEY (work_id, item_id, is_optional)
        )
    ''')

    # 3. Postcode directory
    db.execute('''
        CREATE TABLE postcodes (
            postcode TEXT PRIMARY KEY,
            locality TEXT NOT NULL,
            latitude REAL NOT NULL,
            longitude REAL NOT NULL
        )
    ''')

    # 4. Reservations
    db.execute('''
        CREATE TABLE reservations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            work_id INTEGER,
            user_id INTEGER REFERENCES users(id),
            customer_name TEXT,
            customer_email TEXT,
            customer_phone TEXT,
            notes TEXT,
            total_price REAL NOT NULL DEFAULT 0.0,
            items TEXT NOT NULL DEFAULT '[]',
            optional_items TEXT NOT NULL DEFAULT '[]',
            reservation_date TEXT,
            postcode TEXT,
            extra TEXT NOT NULL DEFAULT '{"deliveryFee": 0, "addOns": []}',
            status TEXT NOT NULL DEFAULT 'PENDING'
                CHECK (status IN ('PENDING', 'CONFIRMED', 'CANCELLED')),
            idempotency_key TEXT UNIQUE,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP,
            updated_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
    ''')


def create_indexes(db):
    """Create indexes for performance."""
    indexes = [
        'CREATE INDEX idx_items_category ON items(category_id)',
        'CREATE INDEX idx_wizard_slots_order ON wizard_slots(display_order)',
        'CREATE INDEX idx_work_items_item ON work_items(item_id)',
        'CREATE INDEX idx_reservations_date ON reservations(reservation_date)',
        'CREATE INDEX idx_reservations_user ON reservations(user_id)',
        'CREATE INDEX idx_reservations_status ON reservations(status)',
    ]

    for sql in indexes:
        db.execute(sql)
