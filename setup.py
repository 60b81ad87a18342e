#!/usr/bin/env python3

from setuptools import setup

version = '1.0.0'
author = 'Azaria Zornberg'
email = 'a.zornberg96@gmail.com'
license_str = 'MIT License'
url = 'https://github.com/zorn96/ms_sddl/'
description = 'Python library for converting Windows security descriptors between binary and SDDL formats'
package_name = 'ms_sddl'
package_folder = '.'

long_description = open('README.md', encoding='utf-8').read()
packages = ['ms_sddl',
            'ms_sddl.core',
            'ms_sddl.environment',
            'ms_sddl.environment.ldap',
            'ms_sddl.environment.security',
            'ms_sddl.tools',
            ]


setup_kwargs = {
    'packages': packages,
    'package_dir': {'': package_folder},
}

requirements = ['ldap3>=2.8.0',
                'pyasn1>=0.4.6',
                ]
test_requirements = ['pytest>=7.0',
                     ]

setup(name=package_name,
      version=version,
      install_requires=requirements,
      extras_require={'test': test_requirements},
      entry_points={
          'console_scripts': [
              'sddl-convert=ms_sddl.tools.sddl_converter:main',
          ],
      },
      license=license_str,
      author=author,
      author_email=email,
      description=description,
      long_description=long_description,
      long_description_content_type='text/markdown',
      keywords='python3 ldap microsoft windows active-directory security-descriptor sddl acl sid',
      python_requires=">=3.6",
      url=url,
      classifiers=['Development Status :: 4 - Beta',
                   'Intended Audience :: Developers',
                   'Intended Audience :: Information Technology',
                   'Intended Audience :: System Administrators',
                   'License :: OSI Approved :: MIT License',
                   'Operating System :: OS Independent',
                   'Programming Language :: Python',
                   'Programming Language :: Python :: 3',
                   'Topic :: Security',
                   'Topic :: Software Development :: Libraries :: Python Modules',
                   'Topic :: System :: Systems Administration :: Authentication/Directory :: LDAP'],
      **setup_kwargs
      )
