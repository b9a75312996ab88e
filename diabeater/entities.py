"""
Typed entities decoded from raw store records.

Records in the store are loosely shaped: the mobile app, older admin screens
and seed scripts all wrote to them. ``from_record`` is the single place where
a record is checked, and it raises ValidationError on anything malformed
instead of letting missing fields leak into the views.
"""
from dataclasses import dataclass, field
from datetime import datetime
import enum

import pytz

from diabeater.errors import ValidationError


class MealPlanStatus(enum.Enum):
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Role(enum.Enum):
    user = "user"
    nutritionist = "nutritionist"
    pending_nutritionist = "pending_nutritionist"
    admin = "admin"


class AccountStatus(enum.Enum):
    Active = "Active"
    Inactive = "Inactive"


class ApplicationStatus(enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class NotificationType(enum.Enum):
    MEAL_PLAN_STATUS_UPDATE = "MEAL_PLAN_STATUS_UPDATE"
    # Written by earlier releases; still readable
    mealPlanApproval = "mealPlanApproval"
    mealPlanRejection = "mealPlanRejection"


class RewardType(enum.Enum):
    basic = "basic"
    premium = "premium"


NUTRIENT_FIELDS = (
    "calories",
    "protein",
    "carbohydrates",
    "fats",
    "saturatedFat",
    "unsaturatedFat",
    "cholesterol",
    "sodium",
    "potassium",
    "sugar",
)


def parse_timestamp(value):
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        # Epoch milliseconds from the mobile app
        return datetime.utcfromtimestamp(value / 1000.0)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            raise ValidationError(f"Invalid timestamp: {value!r}")
        # Stored as naive UTC throughout
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(pytz.utc).replace(tzinfo=None)
        return parsed
    raise ValidationError(f"Invalid timestamp: {value!r}")


def format_timestamp(value):
    return value.isoformat() if value else None


def _required_text(record, key, entity):
    value = record.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{entity} record is missing '{key}'.")
    return value


def _optional_text(record, key, default=''):
    value = record.get(key)
    if value is None:
        return default
    return str(value)


def _count(record, key, entity):
    """Non-negative whole number; numeric strings like '12' are accepted."""
    value = record.get(key, 0)
    if value in (None, ''):
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"{entity} '{key}' must be a number.")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{entity} '{key}' must be a number, got {value!r}.")
    if not number.is_integer():
        raise ValidationError(f"{entity} '{key}' must be a whole number, got {value!r}.")
    number = int(number)
    if number < 0:
        raise ValidationError(f"{entity} '{key}' cannot be negative.")
    return number


def _enum(enum_cls, value, entity, key):
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(f"{entity} has unknown {key} {value!r}.")


def _string_list(value):
    if value is None or value == '':
        return []
    if isinstance(value, str):
        return [line.strip() for line in value.splitlines() if line.strip()]
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    raise ValidationError(f"Expected a list of strings, got {value!r}.")


@dataclass
class NutrientInfo:
    calories: float = None
    protein: float = None
    carbohydrates: float = None
    fats: float = None
    saturatedFat: float = None
    unsaturatedFat: float = None
    cholesterol: float = None
    sodium: float = None
    potassium: float = None
    sugar: float = None

    @classmethod
    def from_record(cls, record):
        values = {}
        for name in NUTRIENT_FIELDS:
            raw = record.get(name)
            if raw is None or raw == '':
                values[name] = None
                continue
            try:
                number = float(raw)
            except (TypeError, ValueError):
                raise ValidationError(f"Nutrient '{name}' must be a number, got {raw!r}.")
            if number < 0:
                raise ValidationError(f"Nutrient '{name}' cannot be negative.")
            values[name] = number
        return cls(**values)

    def to_record(self):
        return {name: getattr(self, name) for name in NUTRIENT_FIELDS}


@dataclass
class MealPlan:
    id: str
    name: str
    author_id: str
    status: MealPlanStatus
    description: str = ''
    author: str = ''
    ingredients: list = field(default_factory=list)
    steps: str = ''
    nutrients: NutrientInfo = field(default_factory=NutrientInfo)
    categories: set = field(default_factory=set)
    image_url: str = ''
    image_file_name: str = ''
    save_count: int = 0
    likes: int = 0
    rejection_reason: str = None
    created_at: datetime = None

    @classmethod
    def from_record(cls, record):
        if 'id' not in record:
            raise ValidationError("Meal plan record has no id.")
        categories = record.get('categories') or []
        if isinstance(categories, str):
            categories = [categories]
        # Single-category field from older records
        if record.get('category'):
            categories = list(categories) + [record['category']]
        reason = record.get('rejectionReason') or None
        return cls(
            id=record['id'],
            name=_required_text(record, 'name', 'Meal plan'),
            author_id=_required_text(record, 'authorId', 'Meal plan'),
            status=_enum(MealPlanStatus, record.get('status'), 'Meal plan', 'status'),
            description=_optional_text(record, 'description'),
            author=_optional_text(record, 'author'),
            ingredients=_string_list(record.get('ingredients')),
            steps=_optional_text(record, 'steps'),
            nutrients=NutrientInfo.from_record(record),
            categories={str(c) for c in categories if c},
            image_url=_optional_text(record, 'imageUrl'),
            image_file_name=_optional_text(record, 'imageFileName'),
            save_count=_count(record, 'saveCount', 'Meal plan'),
            likes=_count(record, 'likes', 'Meal plan'),
            rejection_reason=reason,
            created_at=parse_timestamp(record.get('createdAt')),
        )

    def to_dict(self):
        data = {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'author': self.author,
            'authorId': self.author_id,
            'status': self.status.value,
            'ingredients': list(self.ingredients),
            'steps': self.steps,
            'categories': sorted(self.categories),
            'imageUrl': self.image_url,
            'imageFileName': self.image_file_name,
            'saveCount': self.save_count,
            'likes': self.likes,
            'rejectionReason': self.rejection_reason,
            'createdAt': format_timestamp(self.created_at),
        }
        data.update(self.nutrients.to_record())
        return data


@dataclass
class UserAccount:
    id: str
    email: str
    role: Role
    status: AccountStatus
    first_name: str = ''
    last_name: str = ''
    username: str = ''
    profile_picture_url: str = ''
    is_premium: bool = False
    created_at: datetime = None

    @classmethod
    def from_record(cls, record):
        if 'id' not in record:
            raise ValidationError("User account record has no id.")
        status = record.get('status') or AccountStatus.Active.value
        # Applications written before the Active/Inactive scheme used "Suspended"
        if status == 'Suspended':
            status = AccountStatus.Inactive.value
        return cls(
            id=record['id'],
            email=_required_text(record, 'email', 'User account'),
            role=_enum(Role, record.get('role') or Role.user.value, 'User account', 'role'),
            status=_enum(AccountStatus, status, 'User account', 'status'),
            first_name=_optional_text(record, 'firstName'),
            last_name=_optional_text(record, 'lastName'),
            username=_optional_text(record, 'username'),
            profile_picture_url=_optional_text(record, 'profilePictureUrl'),
            is_premium=bool(record.get('isPremium', False)),
            created_at=parse_timestamp(record.get('createdAt')),
        )

    @property
    def display_name(self):
        full_name = f"{self.first_name} {self.last_name}".strip()
        return full_name or self.username or self.email

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'name': self.display_name,
            'username': self.username,
            'role': self.role.value,
            'status': self.status.value,
            'profilePictureUrl': self.profile_picture_url,
            'isPremium': self.is_premium,
            'createdAt': format_timestamp(self.created_at),
        }


@dataclass
class NutritionistApplication:
    id: str
    email: str
    first_name: str
    last_name: str
    status: ApplicationStatus
    certificate_url: str = ''
    certificate_path: str = ''
    dob: str = ''
    applied_date: datetime = None
    rejection_reason: str = None

    @classmethod
    def from_record(cls, record):
        if 'id' not in record:
            raise ValidationError("Nutritionist application record has no id.")
        return cls(
            id=record['id'],
            email=_required_text(record, 'email', 'Nutritionist application'),
            first_name=_optional_text(record, 'firstName'),
            last_name=_optional_text(record, 'lastName'),
            status=_enum(ApplicationStatus, record.get('status') or 'pending',
                         'Nutritionist application', 'status'),
            certificate_url=_optional_text(record, 'certificateUrl'),
            certificate_path=_optional_text(record, 'certificatePath'),
            dob=_optional_text(record, 'dob'),
            applied_date=parse_timestamp(record.get('appliedDate') or record.get('createdAt')),
            rejection_reason=record.get('rejectionReason') or None,
        )

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip() or 'Nutritionist'

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'name': self.full_name,
            'status': self.status.value,
            'certificateUrl': self.certificate_url,
            'dob': self.dob,
            'appliedDate': format_timestamp(self.applied_date),
            'rejectionReason': self.rejection_reason,
        }


@dataclass
class Notification:
    id: str
    recipient_id: str
    type: NotificationType
    message: str
    meal_plan_id: str = None
    rejection_reason: str = None
    read: bool = False
    timestamp: datetime = None

    @classmethod
    def from_record(cls, record):
        if 'id' not in record:
            raise ValidationError("Notification record has no id.")
        return cls(
            id=record['id'],
            recipient_id=_required_text(record, 'recipientId', 'Notification'),
            type=_enum(NotificationType, record.get('type'), 'Notification', 'type'),
            message=_required_text(record, 'message', 'Notification'),
            meal_plan_id=record.get('mealPlanId'),
            rejection_reason=record.get('rejectionReason') or None,
            read=bool(record.get('isRead') or record.get('read')),
            timestamp=parse_timestamp(record.get('timestamp')),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'recipientId': self.recipient_id,
            'type': self.type.value,
            'message': self.message,
            'mealPlanId': self.meal_plan_id,
            'rejectionReason': self.rejection_reason,
            'read': self.read,
            'timestamp': format_timestamp(self.timestamp),
        }


@dataclass
class Category:
    id: str
    name: str
    description: str = ''
    external_id: str = None

    @classmethod
    def from_record(cls, record):
        if 'id' not in record:
            raise ValidationError("Category record has no id.")
        return cls(
            id=record['id'],
            name=_required_text(record, 'categoryName', 'Category'),
            description=_optional_text(record, 'categoryDescription'),
            external_id=record.get('categoryId'),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'categoryName': self.name,
            'categoryDescription': self.description,
            'categoryId': self.external_id,
        }


@dataclass
class Feedback:
    id: str
    rating: int
    message: str = ''
    author_id: str = ''
    author_name: str = ''
    category: str = ''
    display_on_marketing: bool = False
    status: str = ''

    @classmethod
    def from_record(cls, record):
        if 'id' not in record:
            raise ValidationError("Feedback record has no id.")
        rating = _count(record, 'rating', 'Feedback')
        if not 1 <= rating <= 5:
            raise ValidationError(f"Feedback rating must be between 1 and 5, got {rating}.")
        return cls(
            id=record['id'],
            rating=rating,
            message=_optional_text(record, 'feedback') or _optional_text(record, 'message'),
            author_id=_optional_text(record, 'userId'),
            author_name=_optional_text(record, 'userName') or _optional_text(record, 'name'),
            category=_optional_text(record, 'category'),
            display_on_marketing=bool(record.get('displayOnMarketing', False)),
            status=_optional_text(record, 'status'),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'rating': self.rating,
            'feedback': self.message,
            'userId': self.author_id,
            'userName': self.author_name,
            'category': self.category,
            'displayOnMarketing': self.display_on_marketing,
            'status': self.status,
        }


@dataclass
class SubscriptionPlan:
    id: str
    price: float = None
    features: list = field(default_factory=list)

    @classmethod
    def from_record(cls, record):
        price = record.get('price')
        if price is not None:
            try:
                price = float(price)
            except (TypeError, ValueError):
                raise ValidationError(f"Subscription price must be a number, got {price!r}.")
            if price < 0:
                raise ValidationError("Subscription price cannot be negative.")
        return cls(
            id=record['id'],
            price=price,
            features=_string_list(record.get('features')),
        )

    def to_dict(self):
        return {'id': self.id, 'price': self.price, 'features': list(self.features)}


@dataclass
class Reward:
    """
    A reward users redeem points for. Basic rewards hand out a quantity of an
    item, premium rewards a percentage off the subscription.
    """
    id: str
    type: RewardType
    name: str
    points_needed: int
    quantity: int = None
    discount: float = None

    @classmethod
    def from_record(cls, record):
        if 'id' not in record:
            raise ValidationError("Reward record has no id.")
        reward_type = _enum(RewardType, record.get('type'), 'Reward', 'type')
        points_needed = _count(record, 'pointsNeeded', 'Reward')
        if reward_type is RewardType.basic:
            return cls(
                id=record['id'],
                type=reward_type,
                name=_required_text(record, 'name', 'Reward'),
                points_needed=points_needed,
                quantity=_count(record, 'quantity', 'Reward'),
            )
        discount = record.get('discount')
        try:
            discount = float(discount)
        except (TypeError, ValueError):
            raise ValidationError(f"Reward discount must be a number, got {discount!r}.")
        if not 0 < discount <= 100:
            raise ValidationError(f"Reward discount must be between 0 and 100 percent, got {discount}.")
        return cls(
            id=record['id'],
            type=reward_type,
            name=_required_text(record, 'reward', 'Reward'),
            points_needed=points_needed,
            discount=discount,
        )

    def to_record(self):
        if self.type is RewardType.basic:
            return {'type': self.type.value, 'name': self.name,
                    'quantity': self.quantity, 'pointsNeeded': self.points_needed}
        return {'type': self.type.value, 'reward': self.name,
                'discount': self.discount, 'pointsNeeded': self.points_needed}

    def to_dict(self):
        return {'id': self.id, **self.to_record()}


@dataclass
class RewardTemplate:
    """A reward an admin may configure, read from the template catalogue."""
    id: str
    name: str
    type: RewardType
    description: str = ''
    feature_key: str = None

    @classmethod
    def from_record(cls, record):
        return cls(
            id=record['id'],
            name=_required_text(record, 'title', 'Reward template'),
            type=_enum(RewardType, record.get('type'), 'Reward template', 'type'),
            description=_optional_text(record, 'description'),
            feature_key=record.get('featureKey'),
        )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type.value,
            'description': self.description,
            'featureKey': self.feature_key,
        }


@dataclass
class MarketingContent:
    """The single editable document behind the public marketing website."""
    fields: dict
    is_hosted: bool = True

    @classmethod
    def from_record(cls, record):
        data = {key: value for key, value in record.items() if key not in ('id', 'isHosted')}
        for key, value in data.items():
            if not isinstance(value, (str, list)):
                raise ValidationError(f"Marketing content field '{key}' must be text or a list.")
        return cls(fields=data, is_hosted=bool(record.get('isHosted', True)))

    def to_dict(self):
        return {**self.fields, 'isHosted': self.is_hosted}
