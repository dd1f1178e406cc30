#!python

import os.path
import re

from setuptools import setup, find_packages


def versionstring():
    here = os.path.abspath(os.path.dirname(__file__))
    with open(os.path.join(here, "src", "foliosearch", "__init__.py")) as f:
        match = re.search(r'^__version__ = "([^"]+)"', f.read(), re.M)
    return match.group(1)


if __name__ == "__main__":
    setup(
        name="foliosearch",
        version=versionstring(),
        package_dir={'': 'src'},
        packages=find_packages("src"),

        author="Foliosearch Contributors",

        description="Hybrid semantic, keyword, fuzzy and metadata search for small portfolio corpora, with query suggestions.",
        long_description=open("README.md").read(),
        long_description_content_type="text/markdown",

        license="Two-clause BSD license",
        keywords="search semantic hybrid embeddings portfolio autocomplete",

        zip_safe=True,
        python_requires=">=3.10",
        install_requires=[
            'numpy',
            'pydantic>=2',
        ],
        extras_require={
            'semantic': [
                'sentence-transformers',  # For SentenceTransformerProvider
                'Pillow',  # For image embeddings
            ],
            'test': [
                'pytest',
            ],
        },

        classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: BSD License",
        "Natural Language :: English",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Text Processing :: Indexing",
        ],
    )
