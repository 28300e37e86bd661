from setuptools import setup, find_packages

setup(
    name="lox-lang",
    version="0.1.0",
    description="Lox — scanner, parser and tree-walking interpreter for a small scripting language",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="Lox Project",
    python_requires=">=3.9",
    packages=find_packages(),
    entry_points={
        "console_scripts": [
            "lox=lox.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Topic :: Software Development :: Interpreters",
    ],
)
