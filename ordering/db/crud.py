"""
CRUD facade over the per-domain repositories.

Routers import data access from here so the repository split stays an
implementation detail. Lifecycle logic (carts, checkout, points) lives in
``ordering.services``.
"""
from typing import List, Optional
import uuid

from sqlalchemy.orm import Session

from . import models
from .repositories import audits as repo_audits
from .repositories import customers as repo_customers
from .repositories import menu as repo_menu
from .repositories import orders as repo_orders
from .repositories import promotions as repo_promotions
from .repositories import restaurants as repo_restaurants
from .repositories import tokens as repo_tokens
from .repositories import users as repo_users

# Menu
create_category = repo_menu.create_category
get_category = repo_menu.get_category
list_categories = repo_menu.list_categories
update_category = repo_menu.update_category
delete_category = repo_menu.delete_category
attach_product_to_category = repo_menu.attach_product_to_category
detach_product_from_category = repo_menu.detach_product_from_category
create_section = repo_menu.create_section
get_section = repo_menu.get_section
list_sections = repo_menu.list_sections
update_section = repo_menu.update_section
delete_section = repo_menu.delete_section
create_product = repo_menu.create_product
get_product = repo_menu.get_product
list_products = repo_menu.list_products
update_product = repo_menu.update_product
delete_product = repo_menu.delete_product
get_variant = repo_menu.get_variant
create_variant = repo_menu.create_variant
update_variant = repo_menu.update_variant
delete_variant = repo_menu.delete_variant
create_combo = repo_menu.create_combo
get_combo = repo_menu.get_combo
list_combos = repo_menu.list_combos
update_combo = repo_menu.update_combo
delete_combo = repo_menu.delete_combo
get_public_menu = repo_menu.get_public_menu

_REORDERABLE = {
    "categories": models.Category,
    "products": models.Product,
    "sections": models.Section,
    "combos": models.Combo,
}


def reorder_menu(db: Session, kind: str, ids: List[uuid.UUID]) -> int:
    """Apply a drag-and-drop order to one of the menu tables; unknown kinds raise KeyError."""
    return repo_menu.reorder(db, _REORDERABLE[kind], ids)


# Promotions
create_promotion = repo_promotions.create_promotion
get_promotion = repo_promotions.get_promotion
list_promotions = repo_promotions.list_promotions
update_promotion = repo_promotions.update_promotion
toggle_promotion = repo_promotions.toggle_promotion
delete_promotion = repo_promotions.delete_promotion

# Restaurants
create_restaurant = repo_restaurants.create_restaurant
get_restaurant = repo_restaurants.get_restaurant
list_restaurants = repo_restaurants.list_restaurants
update_restaurant = repo_restaurants.update_restaurant
delete_restaurant = repo_restaurants.delete_restaurant

# Customers, addresses, NITs, devices
create_customer = repo_customers.create_customer
get_customer = repo_customers.get_customer
get_customer_by_email = repo_customers.get_customer_by_email
update_customer = repo_customers.update_customer
list_customers = repo_customers.list_customers
set_customer_password = repo_customers.set_password
soft_delete_customer = repo_customers.soft_delete_customer
list_favorites = repo_customers.list_favorites
get_favorite = repo_customers.get_favorite
add_favorite = repo_customers.add_favorite
delete_favorite = repo_customers.delete_favorite
list_addresses = repo_customers.list_addresses
get_address_owned = repo_customers.get_address_owned
create_address = repo_customers.create_address
update_address = repo_customers.update_address
delete_address = repo_customers.delete_address
list_nits = repo_customers.list_nits
get_nit_owned = repo_customers.get_nit_owned
create_nit = repo_customers.create_nit
update_nit = repo_customers.update_nit
delete_nit = repo_customers.delete_nit
list_devices = repo_customers.list_devices
upsert_device = repo_customers.upsert_device
deactivate_device = repo_customers.deactivate_device

# Loyalty configuration
list_customer_types = repo_customers.list_customer_types
get_customer_type = repo_customers.get_customer_type
create_customer_type = repo_customers.create_customer_type
update_customer_type = repo_customers.update_customer_type
delete_customer_type = repo_customers.delete_customer_type
get_points_settings = repo_customers.get_points_settings
update_points_settings = repo_customers.update_points_settings

# Customer access tokens
create_customer_token = repo_tokens.create_token
get_customer_token_by_token_id = repo_tokens.get_by_token_id
list_customer_tokens = repo_tokens.list_tokens
revoke_customer_token = repo_tokens.revoke_token
revoke_all_customer_tokens = repo_tokens.revoke_all_for_customer
mark_customer_token_used = repo_tokens.mark_used_now

# Orders (read side)
get_order = repo_orders.get_order
get_order_owned = repo_orders.get_order_owned

# Staff users and roles
get_user = repo_users.get_user
get_user_by_email = repo_users.get_user_by_email
get_or_create_user = repo_users.get_or_create_user
list_users = repo_users.list_users
touch_user_activity = repo_users.touch_activity
get_role = repo_users.get_role
get_role_by_name = repo_users.get_role_by_name
list_roles = repo_users.list_roles
create_role = repo_users.create_role
update_role = repo_users.update_role
delete_role = repo_users.delete_role
assign_role = repo_users.assign_role
remove_role = repo_users.remove_role
role_permission_names = repo_users.role_permission_names
user_permission_names = repo_users.user_permission_names


def list_permissions(db: Session) -> List[models.Permission]:
    return db.query(models.Permission).order_by(models.Permission.group, models.Permission.name).all()


# Audit and activity
create_user_activity = repo_audits.create_user_activity


def get_audit_logs(
    db: Session,
    *,
    user_id: Optional[uuid.UUID] = None,
    action_type: Optional[str] = None,
    status: Optional[str] = None,
    target_id: Optional[uuid.UUID] = None,
    skip: int = 0,
    limit: int = 100,
):
    return repo_audits.get_audit_logs(
        db,
        user_id=user_id,
        action_type=action_type,
        status=status,
        target_id=target_id,
        skip=skip,
        limit=limit,
    )
