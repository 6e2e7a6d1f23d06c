from . import models
from .models import (
    User,
    Session,
    Business,
    Product,
    Order,
    OrderItem,
    GiftOrder,
    Notification,
    set_defaults,
)
