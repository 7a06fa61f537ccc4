from setuptools import setup, find_packages

__package_name__ = "basinforge"
__description__ = "This package finds the attractors and basins of attraction of rule-based and weighted Boolean network models, and computes mean-field steady-state probabilities."

__version__ = open("basinforge/_version.py", "rt").read().split('\'')[1]

setup(
      name = __package_name__,
      version = __version__,
      description = __description__,
      long_description = __description__,
      
      license = "MIT",
      
      packages = find_packages(exclude=["tests", "tests.*"]),
      
      classifiers = [
          "Programming Language :: Python :: 3",
      ],
      
      python_requires = ">=3.10",
      
      install_requires = [
          "numpy",
          "networkx",
          "scipy",
      ],
      
      extras_require = {
          "test": ["pytest"],
      },
)
