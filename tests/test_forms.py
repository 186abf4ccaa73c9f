import pytest

from portfolio_builder import forms
from portfolio_builder.errors import PortfolioValidationError


def test_project_form_accepts_valid_input():
    form = forms.parse_form(
        forms.ProjectForm, title=" App ", tech_stack="React", description="A long enough text", link=""
    )
    assert form.title == "App"
    assert form.link is None


@pytest.mark.parametrize(
    "values,field",
    [
        ({"title": "", "tech_stack": "Go", "description": "long enough text"}, "title"),
        ({"title": "A", "tech_stack": "Go", "description": "short"}, "description"),
        ({"title": "A", "tech_stack": "Go", "description": "long enough text", "link": "not a url"}, "link"),
        ({"title": "A", "tech_stack": "Go", "description": "long enough text", "link": "ftp://x.com"}, "link"),
    ],
)
def test_project_form_field_errors(values, field):
    with pytest.raises(PortfolioValidationError) as info:
        forms.parse_form(forms.ProjectForm, **values)
    assert info.value.field == field


def test_link_error_message_is_readable():
    with pytest.raises(PortfolioValidationError) as info:
        forms.parse_form(forms.ProjectForm, title="A", tech_stack="Go", description="long enough text", link="nope")
    assert info.value.message == "Please enter a valid URL."


def test_experience_requires_period():
    with pytest.raises(PortfolioValidationError) as info:
        forms.parse_form(forms.ExperienceForm, role="Dev", company="Acme", period=" ", description="long enough text")
    assert info.value.field == "period"


def test_testimonial_avatar_must_be_url():
    with pytest.raises(PortfolioValidationError):
        forms.parse_form(forms.TestimonialForm, name="Jo", role="PM", text="Great to work with.", avatar_url="x")
    ok = forms.parse_form(forms.TestimonialForm, name="Jo", role="PM", text="Great to work with.", avatar_url="")
    assert ok.avatar_url is None


def test_contact_email_is_optional_but_checked():
    assert forms.parse_form(forms.ContactForm, email="", github="ada").github == "ada"
    with pytest.raises(PortfolioValidationError):
        forms.parse_form(forms.ContactForm, email="not-an-email")


def test_theme_form_is_closed():
    with pytest.raises(PortfolioValidationError) as info:
        forms.parse_form(forms.ThemeForm, color_scheme="dark", layout="brutalist")
    assert info.value.field == "layout"
