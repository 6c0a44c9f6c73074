"""
MockSim Data Template Generator

Named generators producing randomized payloads for mock responses.

Features:
- Built-in user, product, article, list and error templates
- Faker-backed realistic values with optional locale and seed
- Batch generation
- Declarative mock file generation from templates
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union
from datetime import datetime, timezone

import yaml
from faker import Faker

from ..errors import TemplateNotFoundError


@dataclass
class MockTemplate:
    """A named generator of synthetic payloads."""

    name: str
    description: str
    generator: Callable[[], Any]


class DataTemplateGenerator:
    """
    Generator for synthetic response data.

    Each call to ``generate`` produces freshly randomized values; templates
    keep no state between calls beyond the Faker random source.

    Example:
        generator = DataTemplateGenerator(seed=42)
        user = generator.generate('user')
        products = generator.generate('product', count=5)
    """

    def __init__(self, locale: str = 'en_US', seed: Optional[int] = None):
        """
        Initialize template generator.

        Args:
            locale: Faker locale for names, addresses and text
            seed: Optional seed for reproducible output
        """
        self.fake = Faker(locale)
        if seed is not None:
            self.fake.seed_instance(seed)

        self.templates: Dict[str, MockTemplate] = {}
        for template in self._builtin_templates():
            self.templates[template.name] = template

    def seed(self, value: int):
        """Reseed the random source."""
        self.fake.seed_instance(value)

    def _builtin_templates(self) -> List[MockTemplate]:
        return [
            MockTemplate('user', 'Random user profile', self._user),
            MockTemplate('product', 'Random product with price and stock', self._product),
            MockTemplate('article', 'Random article with author and tags', self._article),
            MockTemplate('list', 'Paginated list of items', self._list),
            MockTemplate('error', 'Validation error response', self._error),
        ]

    def _now(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def _user(self) -> Dict[str, Any]:
        return {
            'id': self.fake.random_int(1, 10000),
            'name': self.fake.name(),
            'email': self.fake.email(),
            'avatar': f"https://i.pravatar.cc/150?img={self.fake.random_int(0, 70)}",
            'createdAt': self._now(),
        }

    def _product(self) -> Dict[str, Any]:
        return {
            'id': self.fake.random_int(1, 10000),
            'name': f"Product {self.fake.random_int(0, 999)}",
            'price': f"{self.fake.random_int(0, 100000) / 100:.2f}",
            'stock': self.fake.random_int(0, 99),
            'image': self.fake.image_url(width=200, height=300),
            'category': self.fake.random_element(elements=('Electronics', 'Clothing', 'Books', 'Food')),
            'createdAt': self._now(),
        }

    def _article(self) -> Dict[str, Any]:
        tag_count = self.fake.random_int(1, 3)
        return {
            'id': self.fake.random_int(1, 10000),
            'title': self.fake.sentence(nb_words=5).rstrip('.'),
            'content': self.fake.paragraph(nb_sentences=3),
            'author': self.fake.name(),
            'tags': ['tech', 'news', 'tutorial'][:tag_count],
            'views': self.fake.random_int(0, 9999),
            'likes': self.fake.random_int(0, 999),
            'publishedAt': self._now(),
        }

    def _list(self) -> Dict[str, Any]:
        return {
            'total': 100,
            'page': 1,
            'pageSize': 10,
            'data': [
                {
                    'id': i + 1,
                    'title': f"Item {i + 1}",
                    'status': self.fake.random_element(elements=('active', 'inactive', 'pending')),
                    'createdAt': self._now(),
                }
                for i in range(10)
            ],
        }

    def _error(self) -> Dict[str, Any]:
        return {
            'code': 400,
            'message': 'Bad Request',
            'errors': [
                {
                    'field': 'email',
                    'message': 'Invalid email format',
                }
            ],
        }

    def list_templates(self) -> Dict[str, str]:
        """Return template names mapped to their descriptions."""
        return {name: template.description for name, template in self.templates.items()}

    def generate(self, template_name: str, count: int = 1) -> Any:
        """
        Generate data from a named template.

        Args:
            template_name: Template name (user, product, article, list, error)
            count: Number of values; 1 returns a single value

        Returns:
            A single generated value, or a list of ``count`` values

        Raises:
            TemplateNotFoundError: If the template name is unknown
        """
        template = self.templates.get(template_name)
        if template is None:
            raise TemplateNotFoundError(template_name)

        if count == 1:
            return template.generator()
        return [template.generator() for _ in range(max(count, 0))]

    def generate_mock_file(
        self,
        directory: Union[str, Path],
        file_name: str,
        routes: List[Dict[str, Any]]
    ) -> Path:
        """
        Write a declarative route file with pre-generated template data.

        Args:
            directory: Mock directory to write into
            file_name: File stem, ``.yaml`` is appended
            routes: Items with ``url``, ``method``, ``template`` and optional ``count``

        Returns:
            Path of the generated file
        """
        path = Path(directory) / f"{file_name}.yaml"
        path.parent.mkdir(parents=True, exist_ok=True)

        document = {
            'generated_at': self._now(),
            'routes': [
                {
                    'url': route['url'],
                    'method': route.get('method', 'GET').upper(),
                    'response': self.generate(route['template'], route.get('count', 1)),
                }
                for route in routes
            ],
        }

        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(document, f, sort_keys=False, allow_unicode=True)

        return path

