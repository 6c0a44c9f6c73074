"""
Tests for MockSim data template generator.
"""

import pytest
import yaml

from mocksim.errors import TemplateNotFoundError
from mocksim.mock.generator import DataTemplateGenerator


@pytest.fixture
def generator():
    """Seeded generator."""
    return DataTemplateGenerator(seed=42)


class TestTemplates:
    """Test built-in templates."""

    def test_list_templates(self, generator):
        """Test all built-in templates are registered with descriptions."""
        templates = generator.list_templates()

        assert set(templates) == {'user', 'product', 'article', 'list', 'error'}
        assert all(templates.values())

    def test_user(self, generator):
        """Test user payload shape."""
        user = generator.generate('user')

        assert set(user) == {'id', 'name', 'email', 'avatar', 'createdAt'}
        assert '@' in user['email']

    def test_product(self, generator):
        """Test product payload shape."""
        product = generator.generate('product')

        assert product['category'] in ('Electronics', 'Clothing', 'Books', 'Food')
        assert 0 <= product['stock'] <= 99

    def test_article_tags(self, generator):
        """Test articles carry one to three tags."""
        article = generator.generate('article')

        assert 1 <= len(article['tags']) <= 3

    def test_list(self, generator):
        """Test paginated list payload."""
        page = generator.generate('list')

        assert page['pageSize'] == 10
        assert [item['id'] for item in page['data']] == list(range(1, 11))

    def test_error(self, generator):
        """Test error payload is fixed."""
        assert generator.generate('error')['code'] == 400

    def test_unknown_template(self, generator):
        """Test unknown names raise."""
        with pytest.raises(TemplateNotFoundError):
            generator.generate('invoice')


class TestGenerate:
    """Test generation options."""

    def test_count(self, generator):
        """Test count > 1 returns a list."""
        users = generator.generate('user', count=3)

        assert isinstance(users, list)
        assert len(users) == 3

    def test_seed_reproducible(self):
        """Test the same seed yields the same names."""
        first = DataTemplateGenerator(seed=7).generate('user')['name']
        second = DataTemplateGenerator(seed=7).generate('user')['name']

        assert first == second

    def test_reseed(self, generator):
        """Test seed() restarts the random sequence."""
        generator.seed(99)
        first = generator.generate('product')['name']
        generator.seed(99)

        assert generator.generate('product')['name'] == first


class TestGenerateMockFile:
    """Test declarative file generation."""

    def test_generate_mock_file(self, generator, tmp_path):
        """Test a YAML route file is written with generated data."""
        path = generator.generate_mock_file(tmp_path / 'mock', 'users', [
            {'url': '/api/users', 'method': 'get', 'template': 'user', 'count': 2},
            {'url': '/api/users/:id', 'template': 'user'},
        ])

        document = yaml.safe_load(path.read_text(encoding='utf-8'))

        assert path.name == 'users.yaml'
        assert 'generated_at' in document
        assert document['routes'][0]['method'] == 'GET'
        assert len(document['routes'][0]['response']) == 2
        assert document['routes'][1]['method'] == 'GET'
        assert 'email' in document['routes'][1]['response']
