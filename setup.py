from setuptools import setup, find_namespace_packages


setup(
    name='launchpad_core',
    version='0.1',
    packages=find_namespace_packages(where="src", include=["launchpad_core*"]),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        'pydantic>=2',
        'flask>=2.2',
        'flask-openapi3>=3',
        'python-dotenv',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'launchpad_core = launchpad_core.webapi.webapi:main',
        ],
    },
)
