from setuptools import setup, find_packages

setup(
    name='tiered_routing',
    version='1.0.0',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.10',
    install_requires=[
        'pyyaml>=6.0',
        'pillow>=10.0.0',
        'openai>=1.3.0',
        'anthropic>=0.7.0',
        'google-generativeai>=0.5.0',
        'mistralai>=1.0.0',
        'boto3>=1.28.0',
        'pytesseract>=0.3.10',
        'python-dotenv>=1.0.0',
    ],
    extras_require={
        'dev': [
            'pytest>=7.4.0',
            'pytest-cov>=4.1.0',
            'black>=23.0.0',
            'flake8>=6.0.0',
            'mypy>=1.5.0',
        ]
    },
    entry_points={
        'console_scripts': [
            'tiered-routing=tiered_routing.cli.main:main',
        ],
    },
)
