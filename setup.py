"""
Setup script for pipedream-tools.

Installs the ``pdtools`` package and its two console scripts, ``pdmanager``
and ``pdcreator``.
"""

from pathlib import Path
from setuptools import setup, find_packages


def read_version():
    """Read __version__ from pdtools/__init__.py without importing the package."""
    init_file = Path(__file__).parent / 'pdtools' / '__init__.py'
    for line in init_file.read_text(encoding='utf-8').splitlines():
        if line.startswith('__version__'):
            return line.split('=', 1)[1].strip().strip('"\'')
    raise RuntimeError("Unable to find __version__ in pdtools/__init__.py")


setup(
    name='pipedream-tools',
    version=read_version(),
    description='Command-line tools for managing Pipedream projects and workflows',
    packages=find_packages(include=['pdtools', 'pdtools.*']),
    python_requires='>=3.10',
    install_requires=[
        'requests>=2.31',
        'pydantic>=2.5',
        'click>=8.1',
        'python-dotenv>=1.0',
        'rich>=13.0',
        'cryptography>=41.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.4',
        ],
    },
    entry_points={
        'console_scripts': [
            'pdmanager=pdtools.cli.manager:main',
            'pdcreator=pdtools.cli.creator:main',
        ],
    },
)
