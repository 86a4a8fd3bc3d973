# *-* coding: utf-8 *-*
__author__ = 'offlinekyc developers'
__version__ = '1.0.0'
