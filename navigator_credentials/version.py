"""Navigator Credentials Meta information.
   Navigator Credentials attaches protected credentials to project cards.
"""
__title__ = 'navigator_credentials'
__description__ = (
   'Navigator Credentials attaches encrypted, masked and time-boxed '
   'credentials to project cards.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/navigator-credentials'
