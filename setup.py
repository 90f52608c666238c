#!/usr/bin/env python3
"""
Setup script for Postdeck - blog builder with post filtering and themes.
"""

from setuptools import setup, find_packages
import os

# Read the contents of README file
this_directory = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(this_directory, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    name='postdeck',
    version='1.0.0',
    author='Robert DeVore',
    author_email='me@robertdevore.com',
    description='A personal blog builder with category filtering, search and dark mode',
    long_description=long_description,
    long_description_content_type='text/markdown',
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={
        'postdeck_pkg': [
            'templates/*.html',
            'assets/css/*.css',
            'assets/js/*.js',
        ],
    },
    include_package_data=True,
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Internet :: WWW/HTTP :: Site Management',
        'Topic :: Text Processing :: Markup :: HTML',
    ],
    python_requires='>=3.8',
    install_requires=[
        'Jinja2>=3.0',
        'mistune>=3.0',
        'PyYAML>=6.0',
        'rjsmin>=1.2',
        'csscompressor>=0.9.5',
        'beautifulsoup4>=4.9',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
            'pytest-cov>=4.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'postdeck=postdeck_pkg.cli:main',
        ],
    },
    keywords='static site, blog, markdown, jinja2, dark mode, search',
)
