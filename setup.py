#!/usr/bin/env python


import setuptools

setuptools.setup(name='disfunc',
      version='0.1.0',
      description='Source-annotated Go disassembly and bounds check trap locator.',
      license='Apache License (2.0)',
      packages=setuptools.find_packages(exclude=['tests', 'tests.*']),
      python_requires='>=3.10',
      classifiers = ["Programming Language :: Python",
                     "Programming Language :: Python :: 3",
                     "Operating System :: OS Independent",
                     "License :: OSI Approved :: Apache Software License"],
     install_requires=[
         'rich',
         'pyyaml',
     ],
     extras_require={
         'test': [
             'pytest',
         ],
     },
     entry_points={
         'console_scripts': [
             'disfunc=disfunc.cli:disfunc_main',
             'boundcheck=disfunc.cli:boundcheck_main',
         ],
     },
 )
