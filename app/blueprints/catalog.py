"""Catalog blueprint for categories and products."""
import math
from decimal import Decimal, InvalidOperation
from flask import Blueprint, request, jsonify, current_app, g
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload
from app.database import get_session, MAX_ID, MAX_AMOUNT
from app.models import Category, Product
from app.middleware import require_user
from app.exceptions import ValidationError, NotFoundError
from app.services import stock_service
import logging

logger = logging.getLogger(__name__)

catalog_bp = Blueprint('catalog', __name__, url_prefix='/api')


def _parse_price(value) -> Decimal:
    if value is None or isinstance(value, bool):
        raise ValidationError('Name, category and price are required')
    try:
        price = Decimal(str(value))
        if not price.is_finite() or price < 0:
            raise ValidationError('Price must be a non-negative number')
        if price > MAX_AMOUNT:
            raise ValidationError(f'Price must not exceed {MAX_AMOUNT}')
        return price.quantize(Decimal('0.01'))
    except InvalidOperation:
        raise ValidationError('Price must be a number')


def _parse_min_stock(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError('min_stock must be a non-negative integer')
    return value


def _get_category_or_404(db_session, category_id) -> Category:
    category = None
    if isinstance(category_id, int) and not isinstance(category_id, bool) and 0 < category_id <= MAX_ID:
        category = db_session.query(Category).filter(Category.id == category_id).first()
    if not category:
        raise NotFoundError(f'Category {category_id} not found')
    return category


def _get_product_or_404(db_session, product_id: int, active_only: bool = False) -> Product:
    product = None
    if product_id <= MAX_ID:
        query = db_session.query(Product).options(
            joinedload(Product.category),
            joinedload(Product.stock)
        ).filter(Product.id == product_id)
        if active_only:
            query = query.filter(Product.is_active == True)  # noqa: E712
        product = query.first()
    if not product:
        raise NotFoundError(f'Product with ID {product_id} not found.')
    return product


# =====================================================
# CATEGORIES
# =====================================================

@catalog_bp.route('/categories', methods=['GET'])
def list_categories():
    categories = get_session().query(Category).order_by(Category.name).all()
    return jsonify({'categories': [c.to_dict() for c in categories]})


@catalog_bp.route('/categories/<int:category_id>', methods=['GET'])
def get_category(category_id: int):
    category = _get_category_or_404(get_session(), category_id)
    return jsonify({'category': category.to_dict()})


@catalog_bp.route('/categories', methods=['POST'])
@require_user
def create_category():
    """Create a category."""
    db_session = get_session()
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    if not name:
        raise ValidationError('Category name is required')

    category = Category(name=name, description=data.get('description'))
    db_session.add(category)
    try:
        db_session.commit()
    except IntegrityError:
        db_session.rollback()
        raise ValidationError(f'Category "{name}" already exists')

    return jsonify({'message': 'Category created successfully', 'category': category.to_dict()}), 201


@catalog_bp.route('/categories/<int:category_id>', methods=['PUT'])
@require_user
def update_category(category_id: int):
    """Rename a category or change its description."""
    db_session = get_session()
    category = _get_category_or_404(db_session, category_id)
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    if not name:
        raise ValidationError('Category name is required')

    category.name = name
    if 'description' in data:
        category.description = data.get('description')
    try:
        db_session.commit()
    except IntegrityError:
        db_session.rollback()
        raise ValidationError(f'Category "{name}" already exists')

    return jsonify({'message': 'Category updated successfully', 'category': category.to_dict()})


@catalog_bp.route('/categories/<int:category_id>', methods=['DELETE'])
@require_user
def delete_category(category_id: int):
    """Delete a category no product refers to, deactivated products included."""
    db_session = get_session()
    category = _get_category_or_404(db_session, category_id)

    in_use = db_session.query(Product.id).filter(Product.category_id == category.id).count()
    if in_use:
        raise ValidationError(
            'Cannot delete category that has products. Remove or reassign products first.',
            payload={'product_count': in_use}
        )

    db_session.delete(category)
    db_session.commit()
    logger.info(f"Category deleted: id={category_id}")
    return jsonify({'message': 'Category deleted successfully'})


# =====================================================
# PRODUCTS
# =====================================================

@catalog_bp.route('/products', methods=['GET'])
def list_products():
    """
    List products by name.

    ?search matches part of the name, ?category_id filters, and
    ?include_inactive=true shows deactivated ones.
    """
    db_session = get_session()
    page = max(request.args.get('page', 1, type=int), 1)
    limit = max(request.args.get('limit', 50, type=int), 1)
    search = (request.args.get('search') or '').strip()
    category_id = request.args.get('category_id', type=int)
    include_inactive = request.args.get('include_inactive', '').lower() == 'true'

    query = db_session.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active == True)  # noqa: E712
    if search:
        query = query.filter(Product.name.ilike(f'%{search}%'))
    if category_id:
        query = query.filter(Product.category_id == category_id)

    total = query.count()
    products = query.options(
        joinedload(Product.category),
        joinedload(Product.stock)
    ).order_by(Product.name, Product.id).limit(limit).offset((page - 1) * limit).all()

    return jsonify({
        'products': [p.to_dict() for p in products],
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'totalPages': math.ceil(total / limit),
        }
    })


@catalog_bp.route('/products/<int:product_id>', methods=['GET'])
def get_product(product_id: int):
    product = _get_product_or_404(get_session(), product_id)
    return jsonify({'product': product.to_dict()})


@catalog_bp.route('/products', methods=['POST'])
@require_user
def create_product():
    """
    Create a product together with its stock ledger row at quantity 0.

    An optional positive initial_stock is booked afterwards as a regular
    stock-in so the movement log accounts for it.
    """
    db_session = get_session()
    data = request.get_json(silent=True) or {}

    name = (data.get('name') or '').strip()
    category_id = data.get('category_id')
    if not name or not category_id:
        raise ValidationError('Name, category and price are required')
    price = _parse_price(data.get('price'))

    _get_category_or_404(db_session, category_id)

    min_stock = _parse_min_stock(data.get('min_stock', current_app.config.get('DEFAULT_MIN_STOCK', 5)))

    initial_stock = data.get('initial_stock', 0)
    if isinstance(initial_stock, bool) or not isinstance(initial_stock, int) or initial_stock < 0:
        raise ValidationError('initial_stock must be a non-negative integer')

    product = Product(
        name=name,
        category_id=category_id,
        description=data.get('description'),
        barcode=data.get('barcode') or None,
        price=price,
        is_active=True
    )
    try:
        db_session.add(product)
        db_session.flush()
        stock_service.create_entry(db_session, product.id, min_stock=min_stock)
        db_session.commit()
    except IntegrityError:
        db_session.rollback()
        raise ValidationError('A product with this barcode already exists')

    product_id = product.id
    logger.info(f"Product created: {name} (id={product_id})")

    if initial_stock:
        stock_service.receive_stock(
            db_session,
            product_id,
            initial_stock,
            acting_user_id=g.user_id,
            notes='Initial stock'
        )

    product = _get_product_or_404(db_session, product_id)
    return jsonify({'message': 'Product created successfully', 'product': product.to_dict()}), 201


@catalog_bp.route('/products/<int:product_id>', methods=['PUT'])
@require_user
def update_product(product_id: int):
    """
    Update an active product's catalog fields.

    Only the fields present in the body change. Stock levels are not editable
    here: quantities move through stock-in and sales only.
    """
    db_session = get_session()
    product = _get_product_or_404(db_session, product_id, active_only=True)
    data = request.get_json(silent=True) or {}

    if 'name' in data:
        name = (data.get('name') or '').strip()
        if not name:
            raise ValidationError('Product name must not be empty')
        product.name = name
    if 'category_id' in data:
        product.category_id = _get_category_or_404(db_session, data.get('category_id')).id
    if 'price' in data:
        product.price = _parse_price(data.get('price'))
    if 'description' in data:
        product.description = data.get('description')
    if 'barcode' in data:
        product.barcode = data.get('barcode') or None
    if 'min_stock' in data:
        product.stock.min_stock = _parse_min_stock(data.get('min_stock'))

    try:
        db_session.commit()
    except IntegrityError:
        db_session.rollback()
        raise ValidationError('A product with this barcode already exists')

    logger.info(f"Product updated: id={product_id} fields={sorted(data)}")
    product = _get_product_or_404(db_session, product_id)
    return jsonify({'message': 'Product updated successfully', 'product': product.to_dict()})


@catalog_bp.route('/products/<int:product_id>', methods=['DELETE'])
@require_user
def deactivate_product(product_id: int):
    """Soft delete: the ledger row and movement history are kept."""
    db_session = get_session()
    product = _get_product_or_404(db_session, product_id)
    product.is_active = False
    db_session.commit()
    logger.info(f"Product deactivated: id={product_id}")
    return jsonify({'message': 'Product deactivated successfully'})
