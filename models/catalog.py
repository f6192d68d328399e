"""
Catalog data access functions.
Handles item categories, rentable items and the wizard slot configuration.
"""

from database import get_db
from typing import Optional, List, Dict


ITEM_SELECT = '''
    SELECT i.*, c.name as category_name
    FROM items i
    LEFT JOIN item_categories c ON i.category_id = c.id
'''


# =============================================================================
# CATEGORIES
# =============================================================================

def get_all_categories() -> List[Dict]:
    """Get all item categories ordered by name."""
    db = get_db()
    cursor = db.cursor()
    cursor.execute('SELECT * FROM item_categories ORDER BY name ASC')
    return [dict(row) for row in cursor.fetchall()]


def get_category_by_name(name: str) -> Optional[Dict]:
    """
    Get a category by its unique name.

    Args:
        name: Category name

    Returns:
        Category dict or None if not found
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('SELECT * FROM item_categories WHERE name = ?', (name,))
    row = cursor.fetchone()
    return dict(row) if row else None


def create_category(name: str) -> int:
    """
    Create a new item category.

    Args:
        name: Unique category name

    Returns:
        New category ID

    Raises:
        sqlite3.IntegrityError if the name already exists
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('INSERT INTO item_categories (name) VALUES (?)', (name,))
    db.commit()
    return cursor.lastrowid


# =============================================================================
# ITEMS
# =============================================================================

def get_items(keyword: Optional[str] = None, category_id: Optional[int] = None) -> List[Dict]:
    """
    Get catalog items with optional filtering.

    Args:
        keyword: Case-insensitive match on name or key
        category_id: Restrict to one category

    Returns:
        List of item dicts ordered by name
    """
    db = get_db()
    cursor = db.cursor()

    query = ITEM_SELECT + ' WHERE 1=1'
    params = []

    if keyword:
        query += ' AND (LOWER(i.name) LIKE ? OR LOWER(i.key) LIKE ?)'
        pattern = f'%{keyword.lower()}%'
        params.extend([pattern, pattern])

    if category_id:
        query += ' AND i.category_id = ?'
        params.append(category_id)

    query += ' ORDER BY i.name ASC'

    cursor.execute(query, params)
    return [dict(row) for row in cursor.fetchall()]


def get_items_by_category(category_id: int) -> List[Dict]:
    """
    Get all items of a category.

    Args:
        category_id: Category ID

    Returns:
        List of item dicts ordered by name
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute(ITEM_SELECT + ' WHERE i.category_id = ? ORDER BY i.name ASC', (category_id,))
    return [dict(row) for row in cursor.fetchall()]


def get_item_by_key(key: str) -> Optional[Dict]:
    """
    Get a single item by its catalog key.

    Args:
        key: Unique catalog key

    Returns:
        Item dict or None if not found
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute(ITEM_SELECT + ' WHERE i.key = ?', (key,))
    row = cursor.fetchone()
    return dict(row) if row else None


def get_items_by_keys(keys: List[str]) -> Dict[str, Dict]:
    """
    Get several items at once.

    Args:
        keys: Catalog keys

    Returns:
        dict: {key: item dict} for the keys that exist
    """
    if not keys:
        return {}

    db = get_db()
    cursor = db.cursor()
    placeholders = ','.join('?' * len(keys))
    cursor.execute(ITEM_SELECT + f' WHERE i.key IN ({placeholders})', list(keys))
    return {row['key']: dict(row) for row in cursor.fetchall()}


def get_add_on_items(category_name: str) -> List[Dict]:
    """
    Get the items offered as add-ons.

    Args:
        category_name: Name of the add-on category

    Returns:
        List of item dicts, empty if the category does not exist
    """
    category = get_category_by_name(category_name)
    if not category:
        return []
    return get_items_by_category(category['id'])


def create_item(
    key: str,
    name: str,
    base_price: float,
    category_id: Optional[int] = None,
    unit: Optional[str] = None,
    image_url: Optional[str] = None
) -> int:
    """
    Create a catalog item.

    Args:
        key: Unique catalog key
        name: Display name
        base_price: Unit price
        category_id: Category ID
        unit: Unit label ('each', 'set', ...)
        image_url: Image reference

    Returns:
        New item ID

    Raises:
        ValueError: If the price is negative
        sqlite3.IntegrityError if the key already exists
    """
    if base_price < 0:
        raise ValueError('Item price cannot be negative')

    db = get_db()
    cursor = db.cursor()
    cursor.execute('''
        INSERT INTO items (key, name, base_price, unit, image_url, category_id)
        VALUES (?, ?, ?, ?, ?, ?)
    ''', (key, name, base_price, unit, image_url, category_id))
    db.commit()
    return cursor.lastrowid


def update_item(key: str, **kwargs) -> bool:
    """
    Update item fields.

    Args:
        key: Catalog key of the item
        **kwargs: Fields to update (name, base_price, unit, image_url, category_id)

    Returns:
        True if updated successfully
    """
    allowed_fields = ['name', 'base_price', 'unit', 'image_url', 'category_id']
    updates = []
    values = []

    for field in allowed_fields:
        if field in kwargs:
            updates.append(f'{field} = ?')
            values.append(kwargs[field])

    if not updates:
        return False

    if kwargs.get('base_price') is not None and kwargs['base_price'] < 0:
        raise ValueError('Item price cannot be negative')

    updates.append('updated_at = CURRENT_TIMESTAMP')
    values.append(key)

    db = get_db()
    cursor = db.cursor()
    cursor.execute(f'UPDATE items SET {", ".join(updates)} WHERE key = ?', values)
    db.commit()
    return cursor.rowcount > 0


# =============================================================================
# WIZARD SLOT CONFIGURATION
# =============================================================================

def get_wizard_slots(active_only: bool = True) -> List[Dict]:
    """
    Get the step 1 selection slots in display order.

    Returns:
        List of slot dicts with category_name, selection_mode
        ('single' or 'multi'), is_required and is_optional_item flags
    """
    db = get_db()
    cursor = db.cursor()

    query = '''
        SELECT s.*, c.name as category_name
        FROM wizard_slots s
        JOIN item_categories c ON s.category_id = c.id
    '''
    if active_only:
        query += ' WHERE s.active = 1'
    query += ' ORDER BY s.display_order ASC, s.id ASC'

    cursor.execute(query)
    return [dict(row) for row in cursor.fetchall()]
