import setuptools

VERSION = '0.1.0'

setup_params = dict(
    name='ncurl',
    version=VERSION,
    author='Kenneth VanderLinde',
    author_email='kwvanderlinde@gmail.com',
    keywords='curl http negotiate kerberos ntlm proxy',
    packages=setuptools.find_packages(exclude=['tests', 'tests.*']),
    package_data={'': ['LICENSE.txt']},
    include_package_data=True,
    description='A curl-like HTTP client core with SPNEGO/NTLM and proxy support over libcurl or requests',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    install_requires=[
        'requests>=2.31',
        'urllib3>=2.0',
        'pycurl>=7.45.3',
        'pyspnego>=0.10',
    ],
    extras_require={
        'dev': [
            'mockito>=1.4',
            'pytest>=7.0',
            'pytest-cov>=4.0',
            'ddt>=1.6',
        ],
    },
    entry_points={},
    python_requires='>=3.8',
    classifiers=[
        'Development Status :: 2 - Pre-Alpha',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: BSD License',
        'Natural Language :: English',
        'Operating System :: OS Independent',

        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3 :: Only',
    ],
)


if __name__ == '__main__':
    setuptools.setup(**setup_params)
