"""
Database seed data.
Initial data population for fresh database installations.
"""

from werkzeug.security import generate_password_hash


def seed_database(db):
    """Insert initial seed data."""

    # 1. Users
    users_data = [
        ('admin', 'admin@decorrental.local', 'admin123', 'Administrator', 'admin'),
        ('customer', 'customer@decorrental.local', 'customer123', 'Demo Customer', 'customer'),
    ]

    for username, email, password, full_name, role in users_data:
        db.execute('''
            INSERT INTO users (username, email, password_hash, full_name, role)
            VALUES (?, ?, ?, ?, ?)
        ''', (username, email, generate_password_hash(password), full_name, role))

    # 2. Item categories
    category_ids = {}
    for name in ['Backdrop', 'Decoration', 'Theme', 'Add-ons']:
        cursor = db.execute('INSERT INTO item_categories (name) VALUES (?)', (name,))
        category_ids[name] = cursor.lastrowid

    # 3. Items (key, name, base_price, unit, category)
    items_data = [
        ('roundArch', 'Round Arch', 120, 'each', 'Backdrop'),
        ('meshWall', 'Mesh Wall', 150, 'each', 'Backdrop'),
        ('circleWall', 'Circle Wall', 130, 'each', 'Backdrop'),
        ('panelArch', 'Panel Arch', 140, 'each', 'Backdrop'),
        ('balloonGarland', 'Balloon Garland', 80, 'set', 'Decoration'),
        ('floralArrangement', 'Floral Arrangement', 100, 'each', 'Decoration'),
        ('neonSign', 'Neon Sign', 60, 'each', 'Decoration'),
        ('handySign', 'Handy Sign', 70, 'each', 'Decoration'),
        ('pastel', 'Pastel', 10, 'theme', 'Theme'),
        ('goldWhite', 'Gold & White', 20, 'theme', 'Theme'),
        ('tropical', 'Tropical', 30, 'theme', 'Theme'),
        ('ledUplights', 'LED Uplights', 80, 'set', 'Add-ons'),
        ('photoBooth', 'Photo Booth', 300, 'each', 'Add-ons'),
        ('cakeStand', 'Cake Stand', 40, 'each', 'Add-ons'),
        ('extraBalloons', 'Extra Balloons (bundle)', 50, 'bundle', 'Add-ons'),
    ]

    for key, name, base_price, unit, category in items_data:
        db.execute('''
            INSERT INTO items (key, name, base_price, unit, category_id)
            VALUES (?, ?, ?, ?, ?)
        ''', (key, name, base_price, unit, category_ids[category]))

    # 4. Wizard slots
    # (slot_name, label, category, mode, required, optional item, order)
    slots_data = [
        ('backdrop', 'Choose a Backdrop', 'Backdrop', 'single', 1, 0, 1),
        ('decorations', 'Choose Decorations', 'Decoration', 'multi', 0, 1, 2),
        ('theme', 'Choose a Theme', 'Theme', 'single', 0, 0, 3),
    ]

    for slot_name, label, category, mode, required, optional, order in slots_data:
        db.execute('''
            INSERT INTO wizard_slots (
                slot_name, label, category_id, selection_mode,
                is_required, is_optional_item, display_order
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
        ''', (slot_name, label, category_ids[category], mode, required, optional, order))

    # 5. Postcode directory (Sydney metro sample)
    postcodes_data = [
        ('2000', 'Sydney', -33.8688, 151.2093),
        ('2010', 'Surry Hills', -33.8861, 151.2111),
        ('2031', 'Randwick', -33.9144, 151.2417),
        ('2060', 'North Sydney', -33.8390, 151.2072),
        ('2112', 'Ryde', -33.8150, 151.1030),
        ('2150', 'Parramatta', -33.8150, 151.0011),
        ('2170', 'Liverpool', -33.9200, 150.9238),
        ('2750', 'Penrith', -33.7510, 150.6944),
        ('2300', 'Newcastle', -32.9283, 151.7817),
    ]

    db.executemany('''
        INSERT INTO postcodes (postcode, locality, latitude, longitude)
        VALUES (?, ?, ?, ?)
    ''', postcodes_data)

    # 6. Works (title, image, notes, categories, required items, optional items)
    works_data = [
        ('Pastel Birthday', '/static/works/pastel-birthday.jpg',
         'Soft pastel balloons around a round arch',
         ['Backdrop', 'Theme'],
         [('roundArch', 1), ('pastel', 1)],
         [('neonSign', 1)]),
        ('Golden Gala', '/static/works/golden-gala.jpg',
         'Mesh wall with florals in gold and white',
         ['Backdrop', 'Decoration', 'Theme'],
         [('meshWall', 1), ('floralArrangement', 2), ('goldWhite', 1)],
         [('ledUplights', 1)]),
        ('Tropical Escape', '/static/works/tropical-escape.jpg', None,
         ['Backdrop', 'Theme'],
         [('circleWall', 1), ('tropical', 1)],
         [('balloonGarland', 1), ('photoBooth', 1)]),
    ]

    item_ids = {row[0]: row[1] for row in db.execute('SELECT key, id FROM items').fetchall()}

    for title, image_url, notes, categories, required, optional in works_data:
        cursor = db.execute('''
            INSERT INTO works (title, image_url, notes) VALUES (?, ?, ?)
        ''', (title, image_url, notes))
        work_id = cursor.lastrowid

        for category in categories:
            db.execute('INSERT INTO work_categories (work_id, category_id) VALUES (?, ?)',
                       (work_id, category_ids[category]))

        for is_optional, lines in ((0, required), (1, optional)):
            for key, quantity in lines:
                db.execute('''
                    INSERT INTO work_items (work_id, item_id, quantity, is_optional)
                    VALUES (?, ?, ?, ?)
                ''', (work_id, item_ids[key], quantity, is_optional))
