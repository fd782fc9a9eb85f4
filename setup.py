import os

from setuptools import setup, find_packages

metadata = dict(
  name='unsignjar',
  version='1.0.0',
  description='unsignjar strips code signatures off JAR archives, leaving every other entry intact.',
  classifiers=[
    "Topic :: Software Development :: Build Tools",
    "Topic :: System :: Archiving :: Packaging",
    "Programming Language :: Java",
    "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)"
  ],
  keywords='java jar signature unsign archive',
)

with open(os.path.join(os.path.dirname(os.path.abspath(__file__)), 'README.md')) as f:
  README = f.read()

setup(
  long_description=README,
  long_description_content_type='text/markdown',
  packages=find_packages(exclude=['tests', 'tests.*']),
  zip_safe=False,
  python_requires='>=3.9',
  install_requires=[
    "pypubsub",
    "termcolor",
    "progressbar2",
    "typing_extensions",
  ],
  extras_require={
    'test': [
      "hypothesis",
      "pytest",
    ],
  },
  setup_requires=[
    "wheel",
  ],
  entry_points = {'console_scripts':['unsignjar = unsignjar.app.shell:entry']},
  **metadata
)
