"""
Work data access functions.
Works are curated decoration packages shown in the gallery. Each work lists
the catalog items it is built from (required) and the items offered with it
(optional). Work id 0 stands for the custom package and is never stored.
"""

import logging
from typing import Optional, List, Dict

from database import get_db
from utils.helpers import to_money

logger = logging.getLogger(__name__)

CUSTOM_WORK_ID = 0


# =============================================================================
# QUERY OPERATIONS
# =============================================================================

def _work_lines(work_ids: List[int]) -> Dict[int, Dict[str, list]]:
    """Items and categories of several works, keyed by work id."""
    lines = {work_id: {'items': [], 'optional_items': [], 'categories': []}
             for work_id in work_ids}
    if not work_ids:
        return lines

    db = get_db()
    cursor = db.cursor()
    placeholders = ','.join('?' * len(work_ids))

    cursor.execute(f'''
        SELECT wi.work_id, wi.quantity, wi.is_optional,
               i.id as item_id, i.key, i.name, i.base_price, i.image_url,
               c.name as category_name
        FROM work_items wi
        JOIN items i ON wi.item_id = i.id
        LEFT JOIN item_categories c ON i.category_id = c.id
        WHERE wi.work_id IN ({placeholders})
        ORDER BY wi.work_id, wi.is_optional, i.name
    ''', list(work_ids))
    for row in cursor.fetchall():
        target = 'optional_items' if row['is_optional'] else 'items'
        lines[row['work_id']][target].append({
            'item_id': row['item_id'],
            'key': row['key'],
            'name': row['name'],
            'price': row['base_price'],
            'quantity': row['quantity'],
            'image_url': row['image_url'],
            'category_name': row['category_name'],
        })

    cursor.execute(f'''
        SELECT wc.work_id, c.name
        FROM work_categories wc
        JOIN item_categories c ON wc.category_id = c.id
        WHERE wc.work_id IN ({placeholders})
        ORDER BY c.name
    ''', list(work_ids))
    for row in cursor.fetchall():
        lines[row['work_id']]['categories'].append(row['name'])

    return lines


def _package_total(work: Dict) -> float:
    total = sum(
        (to_money(line['price']) * line['quantity']
         for line in work['items'] + work['optional_items']),
        to_money(0)
    )
    return float(total)


def get_all_works(
    category: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None
) -> List[Dict]:
    """
    Get all works with their items.

    Args:
        category: Only works tagged with this category name
        min_price: Lowest package total (inclusive)
        max_price: Highest package total (inclusive)

    Returns:
        List of work dicts ordered by id, each with items, optional_items,
        categories and total_price
    """
    db = get_db()
    cursor = db.cursor()

    query = 'SELECT w.* FROM works w WHERE w.id != ?'
    params = [CUSTOM_WORK_ID]

    if category:
        query += '''
            AND w.id IN (
                SELECT wc.work_id FROM work_categories wc
                JOIN item_categories c ON wc.category_id = c.id
                WHERE c.name = ?
            )
        '''
        params.append(category)

    query += ' ORDER BY w.id ASC'
    cursor.execute(query, params)
    works = [dict(row) for row in cursor.fetchall()]

    lines = _work_lines([work['id'] for work in works])
    result = []
    for work in works:
        work.update(lines[work['id']])
        work['total_price'] = _package_total(work)
        if min_price is not None and work['total_price'] < min_price:
            continue
        if max_price is not None and work['total_price'] > max_price:
            continue
        result.append(work)
    return result


def get_work_by_id(work_id: int) -> Optional[Dict]:
    """
    Get a single work with its items.

    Args:
        work_id: Work ID

    Returns:
        Work dict or None if not found
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('SELECT * FROM works WHERE id = ?', (work_id,))
    row = cursor.fetchone()
    if not row:
        return None

    work = dict(row)
    work.update(_work_lines([work_id])[work_id])
    work['total_price'] = _package_total(work)
    return work


def serialize_work(work: Dict) -> Dict:
    """Public wire shape of a work."""
    def line(item):
        return {
            'key': item['key'],
            'name': item['name'],
            'price': item['price'],
            'quantity': item['quantity'],
        }

    return {
        'id': work['id'],
        'title': work['title'],
        'src': work.get('image_url'),
        'notes': work.get('notes'),
        'categories': work['categories'],
        'items': [line(item) for item in work['items']],
        'optionalItems': [line(item) for item in work['optional_items']],
        'totalPrice': work['total_price'],
    }


# =============================================================================
# CREATE / UPDATE / DELETE
# =============================================================================

def _resolve_lines(cursor, lines, label: str) -> List[tuple]:
    """
    Turn [{key, quantity}] into (item_id, quantity) pairs.

    Raises:
        ValueError: If a key is unknown or repeated, or a quantity is not a
            positive integer
    """
    resolved = []
    seen = set()
    for line in lines or []:
        if not isinstance(line, dict):
            raise ValueError(f'Invalid {label} item: {line}')
        key = line.get('key')
        quantity = line.get('quantity', 1)
        if key in seen:
            raise ValueError(f'Duplicate {label} item: {key}')
        seen.add(key)
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise ValueError(f'Invalid quantity for {label} item {key}: {quantity}')

        cursor.execute('SELECT id FROM items WHERE key = ?', (key,))
        row = cursor.fetchone()
        if not row:
            raise ValueError(f'{label.capitalize()} item not found: {key}')
        resolved.append((row['id'], quantity))
    return resolved


def _resolve_categories(cursor, names) -> List[int]:
    category_ids = []
    for name in names or []:
        cursor.execute('SELECT id FROM item_categories WHERE name = ?', (name,))
        row = cursor.fetchone()
        if not row:
            raise ValueError(f'Category not found: {name}')
        category_ids.append(row['id'])
    return category_ids


def _write_relations(cursor, work_id, category_ids, required, optional) -> None:
    for category_id in category_ids:
        cursor.execute('INSERT INTO work_categories (work_id, category_id) VALUES (?, ?)',
                       (work_id, category_id))

    for is_optional, lines in ((0, required), (1, optional)):
        for item_id, quantity in lines:
            cursor.execute('''
                INSERT INTO work_items (work_id, item_id, quantity, is_optional)
                VALUES (?, ?, ?, ?)
            ''', (work_id, item_id, quantity, is_optional))


def create_work(
    title: str,
    image_url: str = None,
    notes: str = None,
    categories: list = None,
    items: list = None,
    optional_items: list = None
) -> Dict:
    """
    Create a work.

    Args:
        title: Work title (required)
        image_url: Gallery image
        notes: Free-text notes
        categories: Category names
        items: Required items [{key, quantity}]
        optional_items: Optional items [{key, quantity}]

    Returns:
        dict: The stored work

    Raises:
        ValueError: If the title is empty or an item/category is unknown
    """
    if not isinstance(title, str) or not title.strip():
        raise ValueError('Work title is required')

    db = get_db()
    cursor = db.cursor()

    try:
        cursor.execute('BEGIN IMMEDIATE')
        category_ids = _resolve_categories(cursor, categories)
        required = _resolve_lines(cursor, items, 'required')
        optional = _resolve_lines(cursor, optional_items, 'optional')

        cursor.execute('INSERT INTO works (title, image_url, notes) VALUES (?, ?, ?)',
                       (title.strip(), image_url, notes))
        work_id = cursor.lastrowid
        _write_relations(cursor, work_id, category_ids, required, optional)
        db.commit()

    except Exception:
        db.rollback()
        raise

    logger.info(f'[Work] Created work {work_id} "{title}"')
    return get_work_by_id(work_id)


def update_work(
    work_id: int,
    title: str,
    image_url: str = None,
    notes: str = None,
    categories: list = None,
    items: list = None,
    optional_items: list = None
) -> Optional[Dict]:
    """
    Replace a work's fields, categories and items.

    Returns:
        dict: The updated work, or None if not found

    Raises:
        ValueError: If the title is empty or an item/category is unknown
    """
    if not isinstance(title, str) or not title.strip():
        raise ValueError('Work title is required')

    db = get_db()
    cursor = db.cursor()

    try:
        cursor.execute('BEGIN IMMEDIATE')
        cursor.execute('SELECT id FROM works WHERE id = ?', (work_id,))
        if not cursor.fetchone():
            db.rollback()
            return None

        category_ids = _resolve_categories(cursor, categories)
        required = _resolve_lines(cursor, items, 'required')
        optional = _resolve_lines(cursor, optional_items, 'optional')

        cursor.execute('''
            UPDATE works
            SET title = ?, image_url = ?, notes = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
        ''', (title.strip(), image_url, notes, work_id))
        cursor.execute('DELETE FROM work_categories WHERE work_id = ?', (work_id,))
        cursor.execute('DELETE FROM work_items WHERE work_id = ?', (work_id,))
        _write_relations(cursor, work_id, category_ids, required, optional)
        db.commit()

    except Exception:
        db.rollback()
        raise

    logger.info(f'[Work] Updated work {work_id}')
    return get_work_by_id(work_id)


def delete_work(work_id: int) -> bool:
    """
    Delete a work. Reservations keep their work_id.

    Returns:
        bool: True if a work was deleted
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('DELETE FROM works WHERE id = ?', (work_id,))
    db.commit()
    deleted = cursor.rowcount > 0
    if deleted:
        logger.info(f'[Work] Deleted work {work_id}')
    return deleted
