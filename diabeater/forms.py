from datetime import date

from flask_wtf import FlaskForm
from flask_wtf.file import FileAllowed, FileField, FileRequired
from wtforms import (
    DateField,
    FloatField,
    PasswordField,
    SelectMultipleField,
    StringField,
    TextAreaField,
)
from wtforms.validators import (
    DataRequired,
    Email,
    EqualTo,
    InputRequired,
    Length,
    NumberRange,
    Optional,
    ValidationError,
)

from diabeater.entities import NUTRIENT_FIELDS

IMAGE_EXTENSIONS = ['jpg', 'jpeg', 'png', 'gif', 'webp']
MIN_ADMIN_AGE = 18


def _not_blank(form, field):
    if not field.data or not str(field.data).strip():
        raise ValidationError("This field cannot be blank or only whitespace.")


class LoginForm(FlaskForm):
    email = StringField("Email", validators=[DataRequired(), Email()])
    password = PasswordField("Password", validators=[DataRequired()])


class MealPlanForm(FlaskForm):
    name = StringField("Meal Plan Name", validators=[DataRequired(), _not_blank, Length(max=120)])
    description = TextAreaField("Description", validators=[Optional(), Length(max=2000)])
    ingredients = TextAreaField("Ingredients", validators=[Optional()])
    steps = TextAreaField("Preparation Steps", validators=[Optional()])
    categories = SelectMultipleField("Categories", validate_choice=False)
    calories = FloatField("Calories", validators=[Optional(), NumberRange(min=0)])
    protein = FloatField("Protein (g)", validators=[Optional(), NumberRange(min=0)])
    carbohydrates = FloatField("Carbohydrates (g)", validators=[Optional(), NumberRange(min=0)])
    fats = FloatField("Fats (g)", validators=[Optional(), NumberRange(min=0)])
    saturatedFat = FloatField("Saturated Fat (g)", validators=[Optional(), NumberRange(min=0)])
    unsaturatedFat = FloatField("Unsaturated Fat (g)", validators=[Optional(), NumberRange(min=0)])
    cholesterol = FloatField("Cholesterol (mg)", validators=[Optional(), NumberRange(min=0)])
    sodium = FloatField("Sodium (mg)", validators=[Optional(), NumberRange(min=0)])
    potassium = FloatField("Potassium (mg)", validators=[Optional(), NumberRange(min=0)])
    sugar = FloatField("Sugar (g)", validators=[Optional(), NumberRange(min=0)])
    image = FileField("Meal Plan Image", validators=[FileAllowed(IMAGE_EXTENSIONS, "Images only.")])

    def to_record(self):
        # A JSON list arrives as several values; a textarea as one block
        raw_ingredients = [v for v in (self.ingredients.raw_data or []) if v]
        ingredients = raw_ingredients if len(raw_ingredients) > 1 else (self.ingredients.data or '')
        record = {
            'name': self.name.data.strip(),
            'description': (self.description.data or '').strip(),
            'ingredients': ingredients,
            'steps': self.steps.data or '',
            'categories': [c for c in (self.categories.data or []) if c],
        }
        for field_name in NUTRIENT_FIELDS:
            record[field_name] = getattr(self, field_name).data
        return record


class CategoryForm(FlaskForm):
    name = StringField("Category Name", validators=[DataRequired(), _not_blank, Length(max=100)])
    description = TextAreaField("Description", validators=[Optional(), Length(max=500)])
    external_id = StringField("Category ID", validators=[Optional(), Length(max=100)])


class DecisionForm(FlaskForm):
    # Verdict and reason rules are enforced by the moderation engine
    verdict = StringField("Decision")
    reason = TextAreaField("Rejection Reason", validators=[Optional(), Length(max=1000)])


class ApplicationRejectionForm(FlaskForm):
    reason = TextAreaField("Rejection Reason", validators=[Optional(), Length(max=1000)])


class NutritionistApplicationForm(FlaskForm):
    first_name = StringField("First Name", validators=[DataRequired(), _not_blank, Length(max=50)])
    last_name = StringField("Last Name", validators=[DataRequired(), _not_blank, Length(max=50)])
    email = StringField("Email", validators=[DataRequired(), Email()])
    password = PasswordField("Password", validators=[DataRequired(), Length(min=6)])
    dob = DateField("Date of Birth", validators=[Optional()])
    certificate = FileField("Certificate", validators=[
        FileRequired("A PDF certificate is required."),
        FileAllowed(['pdf'], "Certificate must be a PDF."),
    ])


class ProfileForm(FlaskForm):
    first_name = StringField("First Name", validators=[Optional(), Length(max=50)])
    last_name = StringField("Last Name", validators=[Optional(), Length(max=50)])
    username = StringField("Username", validators=[Optional(), Length(max=50)])

    def to_record(self):
        fields = {
            'firstName': self.first_name.data,
            'lastName': self.last_name.data,
            'username': self.username.data,
        }
        return {key: value.strip() for key, value in fields.items() if value is not None and value.strip()}


class ProfileImageForm(FlaskForm):
    image = FileField("Profile Image", validators=[
        FileRequired("No file provided"),
        FileAllowed(IMAGE_EXTENSIONS, "Images only."),
    ])


class SubscriptionPriceForm(FlaskForm):
    price = FloatField("Price", validators=[InputRequired(), NumberRange(min=0)])


def _adult(form, field):
    if field.data is None:
        return
    today = date.today()
    age = today.year - field.data.year - ((today.month, today.day) < (field.data.month, field.data.day))
    if age < MIN_ADMIN_AGE:
        raise ValidationError(f"Admin must be at least {MIN_ADMIN_AGE} years old.")


class AdminAccountForm(FlaskForm):
    first_name = StringField("First Name", validators=[DataRequired(), _not_blank, Length(min=2, max=50)])
    last_name = StringField("Last Name", validators=[DataRequired(), _not_blank, Length(min=2, max=50)])
    email = StringField("Email", validators=[DataRequired(), Email()])
    password = PasswordField("Password", validators=[DataRequired(), Length(min=6)])
    confirm_password = PasswordField("Confirm Password", validators=[
        DataRequired(), EqualTo('password', message="Passwords do not match."),
    ])
    dob = DateField("Date of Birth", validators=[DataRequired(), _adult])

    def to_record(self):
        return {
            'email': self.email.data.strip().lower(),
            'firstName': self.first_name.data.strip(),
            'lastName': self.last_name.data.strip(),
            'dob': self.dob.data.isoformat(),
        }
