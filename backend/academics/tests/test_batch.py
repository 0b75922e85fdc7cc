from django.test import TestCase

from academics.exceptions import ConflictError, NotFoundError
from academics.models import Subject
from academics.services.batch import run_batch
from academics.tests.fixtures import CollegeFixtureMixin


class RunBatchTests(CollegeFixtureMixin, TestCase):
    def test_service_errors_are_collected(self):
        def func(n):
            if n == 2:
                raise NotFoundError(f'item {n} missing')
            return n * 10

        result = run_batch([1, 2, 3], func, describe=lambda n: {'n': n})
        self.assertEqual(result.successful, [10, 30])
        self.assertEqual(result.failed, [{'n': 2, 'error': 'item 2 missing'}])
        self.assertEqual(result.summary(), {'total': 3, 'successful': 2, 'failed': 1})

    def test_failed_item_leaves_no_partial_write(self):
        def func(code):
            Subject.objects.create(college=self.college, name=code, code=code)
            if code == 'BAD':
                raise ConflictError('rejected after write')
            return code

        result = run_batch(['OK-1', 'BAD', 'OK-2'], func)
        self.assertEqual(result.successful, ['OK-1', 'OK-2'])
        self.assertEqual(result.failed[0]['input'], 'BAD')
        self.assertFalse(Subject.objects.filter(code='BAD').exists())

    def test_integrity_error_is_an_item_failure(self):
        def func(code):
            return Subject.objects.create(college=self.college, name=code, code=code).code

        result = run_batch(['MATH-101', 'NEW-1'], func)
        self.assertEqual(result.successful, ['NEW-1'])
        self.assertEqual(len(result.failed), 1)

    def test_unexpected_errors_propagate(self):
        def func(n):
            raise KeyError(n)

        with self.assertRaises(KeyError):
            run_batch([1], func)
