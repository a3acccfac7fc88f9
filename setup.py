from setuptools import setup, find_packages
import re

# Read version from praxiscalc/__init__.py
with open('praxiscalc/__init__.py') as f:
    version = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.MULTILINE).group(1)

setup(
    name='praxis-calc',
    version=version,
    packages=find_packages(include=['praxiscalc', 'praxiscalc.*']),
    install_requires=[
        'pydantic>=2.0.0',
        'PyYAML>=6.0',
        'click>=8.0',
        'rich>=13.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'praxis-calc=praxiscalc.cli.__main__:main',
        ],
    },
    author='Personal',
    description='Staffing demand and privacy-compliant HR KPIs for dental practices.',
    python_requires='>=3.10',
)
