"""
Tests for the before/after reveal (beforeafter/core/reveal.py)
"""
from beforeafter.core.reveal import compose_reveal, compose_reveal_from_urls

from .helpers import data_url, make_image


RED = (255, 0, 0)
BLUE = (0, 0, 255)


class TestComposeReveal:
    """Test compose_reveal"""

    def test_split_in_the_middle(self):
        result = compose_reveal(make_image(100, 10, RED), make_image(100, 10, BLUE), 50)
        assert result.size == (100, 10)
        assert result.getpixel((49, 5)) == RED
        assert result.getpixel((50, 5)) == BLUE

    def test_zero_shows_after_only(self):
        result = compose_reveal(make_image(40, 10, RED), make_image(40, 10, BLUE), 0)
        assert result.getpixel((0, 0)) == BLUE

    def test_full_shows_before_only(self):
        result = compose_reveal(make_image(40, 10, RED), make_image(40, 10, BLUE), 100)
        assert result.getpixel((39, 9)) == RED

    def test_position_clamped(self):
        result = compose_reveal(make_image(40, 10, RED), make_image(40, 10, BLUE), 250)
        assert result.getpixel((39, 0)) == RED

    def test_after_resized_to_before(self):
        result = compose_reveal(make_image(60, 30, RED), make_image(10, 10, BLUE), 50)
        assert result.size == (60, 30)
        assert result.getpixel((59, 29)) == BLUE

    def test_without_after(self):
        result = compose_reveal(make_image(20, 20, RED), None, 30)
        assert result.getpixel((19, 19)) == RED

    def test_from_urls(self):
        result = compose_reveal_from_urls(
            data_url(make_image(50, 10, RED)), data_url(make_image(50, 10, BLUE)), 20
        )
        assert result.getpixel((5, 5)) == RED
        assert result.getpixel((45, 5)) == BLUE
