from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileAllowed
from wtforms import StringField, IntegerField, FloatField, TextAreaField, SelectField, SubmitField, PasswordField
from wtforms.fields import DateField
from wtforms.validators import DataRequired, Email, InputRequired, Length, NumberRange, Optional

from mandi.models.equipment import OfferType

# Formulário de cadastro de agricultor
class RegistrationForm(FlaskForm):
    display_name = StringField('Name', validators=[DataRequired(message="This field is required."), Length(max=150)])
    email = StringField('E-mail', validators=[DataRequired(message="This field is required."), Email(message="Please enter a valid e-mail.")])
    password = PasswordField('Password', validators=[DataRequired(message="This field is required."), Length(min=8, message="Password must have at least 8 characters.")])
    submit = SubmitField('Register')

# Formulário para anunciar equipamento (aluguel ou venda)
class ListingForm(FlaskForm):
    name = StringField('Equipment name', validators=[DataRequired(), Length(max=150)])
    offer_type = SelectField('Offer', choices=[(OfferType.RENT, 'Rent'), (OfferType.SALE, 'Sale')], default=OfferType.RENT)
    price = FloatField('Price (₹)', validators=[InputRequired(), NumberRange(min=0)])
    location = StringField('Location', validators=[Optional(), Length(max=200)])
    description = TextAreaField('Description', validators=[Optional()])
    image = FileField('Photo', validators=[FileAllowed(['jpg', 'jpeg', 'png', 'webp'], 'Images only!')])
    submit = SubmitField('Post Listing')

# Período desejado (opcional) ao pedir um equipamento
class BookingRequestForm(FlaskForm):
    start_date = DateField('Start date', format='%Y-%m-%d', validators=[Optional()])
    end_date = DateField('End date', format='%Y-%m-%d', validators=[Optional()])
    submit = SubmitField('Send Request')

class MessageForm(FlaskForm):
    text = TextAreaField('Message', validators=[Length(max=2000)])
    submit = SubmitField('Send')

class ReviewForm(FlaskForm):
    rating = IntegerField('Rating', validators=[InputRequired(), NumberRange(min=1, max=5)], default=5)
    comment = TextAreaField('Comment', validators=[Optional(), Length(max=1000)])
    submit = SubmitField('Submit Review')
