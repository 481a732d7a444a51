from setuptools import find_packages, setup

with open("README.md", encoding="utf-8") as readme_file:
    long_description = readme_file.read()

setup(
    name="embedding_projector",
    version="0.1.0",
    author="Your Name",
    author_email="your.email@example.com",
    description="Deterministic UMAP, t-SNE and PCA projections of text embeddings to 2D",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/embedding-projector",
    packages=find_packages(exclude=("tests", "tests.*")),
    install_requires=[
        "numpy>=1.20.0",
        "scipy>=1.7.0,<2.0.0",
        "jsonschema>=4.0.0,<5.0.0",
        "PyYAML>=6.0,<7.0",
        "wandb>=0.15.0,<1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "scikit-learn>=1.0.0,<2.0.0",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Information Analysis",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
)
