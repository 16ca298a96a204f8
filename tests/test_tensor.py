import logging

import numpy as np
import pytest

from NNpy.core import ShapeMismatchError, Tensor, matrix_multiply


class TestTensorCreation:
    """Tests for tensor construction and layout"""

    def test_zero_initialized_from_sizes(self):
        """Test creating a tensor from explicit dimension sizes"""
        t = Tensor(2, 3, 4)
        assert t.shape == (2, 3, 4)
        assert t.rank == 3
        assert t.length == 24
        assert t.data.dtype == np.float32
        assert t.data.size == t.length
        assert np.all(t.data == 0)

        # A single sequence of sizes works the same way
        assert Tensor((2, 3, 4)).shape == (2, 3, 4)

    def test_strides(self):
        """Test the stride table: first dimension varies fastest"""
        assert Tensor(2, 3, 4).strides == (1, 2, 6)
        assert Tensor(5).strides == (1,)

    def test_scalar(self):
        t = Tensor.scalar(3.5)
        assert t.shape == (1, 1)
        assert t[0, 0] == 3.5

    def test_from_row_and_column(self):
        """Test creating tensors from flat sequences"""
        row = Tensor.from_row([1.0, 2.0, 3.0])
        assert row.shape == (1, 3)
        assert row[0, 2] == 3.0

        column = Tensor.from_column([1.0, 2.0, 3.0])
        assert column.shape == (3, 1)
        assert column[2, 0] == 3.0

    def test_from_grid(self):
        """Test that grid literals are laid out column-major"""
        t = Tensor.from_grid([[0, 1, 2], [3, 4, 5], [6, 7, 8]])
        assert t.shape == (3, 3)
        assert t[1, 1] == 4.0
        assert t[0, 2] == 2.0
        assert t[2, 0] == 6.0
        assert np.array_equal(t.data, [0, 3, 6, 1, 4, 7, 2, 5, 8])

    def test_from_grid_rejects_non_matrix(self):
        with pytest.raises(ShapeMismatchError):
            Tensor.from_grid([1.0, 2.0])

    def test_numpy_round_trip(self):
        """Test conversion to and from numpy arrays"""
        array = np.arange(24, dtype=np.float32).reshape(2, 3, 4)
        t = Tensor.from_numpy(array)
        assert t.shape == (2, 3, 4)
        assert t[1, 2, 3] == array[1, 2, 3]
        assert np.array_equal(t.numpy(), array)

    def test_invalid_sizes(self):
        """Test that non-integer and negative sizes are rejected"""
        with pytest.raises(TypeError):
            Tensor(1.5)
        with pytest.raises(ValueError):
            Tensor(2, -1)

    def test_copy_is_independent(self):
        t = Tensor.from_grid([[1, 2], [3, 4]])
        c = t.copy()
        c[0, 0] = 10.0
        assert t[0, 0] == 1.0
        assert c.shape == t.shape


class TestTensorIndexing:
    """Tests for coordinate access"""

    def test_set_then_get(self):
        """Test that every written coordinate reads back its value"""
        t = Tensor(2, 3, 4)
        for i in range(2):
            for j in range(3):
                for k in range(4):
                    t[i, j, k] = i * 100 + j * 10 + k
        for i in range(2):
            for j in range(3):
                for k in range(4):
                    assert t[i, j, k] == i * 100 + j * 10 + k

    def test_offset_follows_strides(self):
        t = Tensor(2, 3, 4)
        t[1, 2, 3] = 5.0
        assert t.data[1 + 2 * 2 + 3 * 6] == 5.0

    def test_partial_coordinates(self):
        """Test coordinate tuples shorter than the rank"""
        t = Tensor.from_grid([[1, 2], [3, 4]])
        assert t[1] == 3.0
        t[1] = 7.0
        assert t[1, 0] == 7.0

    def test_out_of_bounds(self):
        """Test that bad coordinates raise instead of reading other elements"""
        t = Tensor(3, 3)
        with pytest.raises(IndexError):
            _ = t[3, 0]
        with pytest.raises(IndexError):
            _ = t[0, -1]
        with pytest.raises(IndexError):
            _ = t[0, 0, 0]
        with pytest.raises(IndexError):
            t[0, 3] = 1.0


class TestElementwiseOperations:
    """Tests for elementwise arithmetic"""

    def setup_method(self):
        self.a = Tensor.from_grid([[1, 2], [3, 4]])
        self.b = Tensor.from_grid([[5, 6], [7, 8]])

    def test_add(self):
        assert self.a + self.b == Tensor.from_grid([[6, 8], [10, 12]])
        assert self.a + 1 == Tensor.from_grid([[2, 3], [4, 5]])
        assert 1 + self.a == self.a + 1

    def test_subtract(self):
        assert self.b - self.a == Tensor.from_grid([[4, 4], [4, 4]])
        assert self.a - 1 == self.a + (-1)
        assert 10 - self.a == Tensor.from_grid([[9, 8], [7, 6]])

    def test_negate(self):
        assert -self.a == Tensor.from_grid([[-1, -2], [-3, -4]])

    def test_hadamard(self):
        assert self.a.hadamard(self.b) == Tensor.from_grid([[5, 12], [21, 32]])

    def test_scalar_multiply(self):
        expected = Tensor.from_grid([[2, 4], [6, 8]])
        assert self.a * 2 == expected
        assert 2 * self.a == expected
        assert self.a.scale(2) == expected
        assert self.a / 0.5 == expected

    def test_shape_preserved(self):
        """Test that elementwise results keep the operand shape"""
        a = Tensor.from_numpy(np.ones((2, 3, 2)))
        b = Tensor.from_numpy(np.full((2, 3, 2), 2.0))
        for result in (a + b, a - b, a.hadamard(b), -a, a + 1, a * 3):
            assert result.shape == (2, 3, 2)

    def test_shape_mismatch(self):
        """Test that mismatched shapes fail before computing anything"""
        c = Tensor(3, 1)
        with pytest.raises(ShapeMismatchError):
            _ = self.a + c
        with pytest.raises(ShapeMismatchError):
            _ = self.a - c
        with pytest.raises(ShapeMismatchError):
            self.a.hadamard(c)

        # Same length, different shape
        with pytest.raises(ShapeMismatchError):
            _ = Tensor(4, 1) + Tensor(1, 4)

    def test_results_are_new_tensors(self):
        result = self.a + self.b
        result[0, 0] = 100.0
        assert self.a[0, 0] == 1.0


class TestMatrixOperations:
    """Tests for generalized multiply, matrix multiply and transpose"""

    def test_multiply(self):
        a = Tensor.from_grid([[1, 2, 5], [6, 1, 3], [4, 9, 2]])
        b = Tensor.from_grid([[2, 0, 8], [6, 1, 0], [7, 4, 2]])
        expected = Tensor.from_grid([[49, 22, 18], [39, 13, 54], [76, 17, 36]])
        assert a * b == expected
        assert a @ b == expected

    def test_multiply_different_sizes(self):
        a = Tensor.from_grid([[1], [3], [2]])
        b = Tensor.from_grid([[1, 1, 5]])
        expected = Tensor.from_grid([[1, 1, 5], [3, 3, 15], [2, 2, 10]])
        product = a * b
        assert product.shape == (3, 3)
        assert product == expected

    def test_single_element_operands(self):
        """Test that single-element operands multiply as scalars"""
        assert Tensor.scalar(3) * Tensor.scalar(4) == Tensor.scalar(12)
        assert (Tensor.scalar(3) * Tensor.from_row([4])).shape == (1, 1)

    def test_rank_one_is_a_column(self):
        """Test that rank-1 operands behave as Nx1 columns"""
        weights = Tensor.from_grid([[1, 2, 3], [4, 5, 6]])
        vector = Tensor(3)
        vector.data[:] = [1, 0, -1]
        product = matrix_multiply(weights, vector)
        assert product.shape == (2, 1)
        assert product == Tensor.from_column([-2, -2])

    def test_inner_dimension_mismatch(self):
        with pytest.raises(ShapeMismatchError):
            matrix_multiply(Tensor(2, 3), Tensor(2, 3))
        with pytest.raises(ShapeMismatchError):
            _ = Tensor(2, 3) @ Tensor(2, 1)

    def test_matrix_multiply_into_output(self):
        out = Tensor(2, 2)
        a = Tensor.from_grid([[1, 2], [3, 4]])
        result = matrix_multiply(a, a, out=out)
        assert result is out
        assert out == Tensor.from_grid([[7, 10], [15, 22]])

        with pytest.raises(ShapeMismatchError):
            matrix_multiply(a, a, out=Tensor(3, 3))

    def test_empty_operands(self):
        """Test products with a zero-sized dimension"""
        result = Tensor(0, 3) @ Tensor(3, 2)
        assert result.shape == (0, 2)
        assert result.length == 0

        assert (Tensor(2, 3) @ Tensor(3, 0)).shape == (2, 0)
        assert Tensor(2, 0) @ Tensor(0, 3) == Tensor(2, 3)

    def test_higher_rank_fallback(self, caplog):
        """Test the zero-tensor result for operands above rank 2"""
        a = Tensor(2, 2, 2)
        b = Tensor(2, 2, 2)
        with caplog.at_level(logging.WARNING, logger="NNpy.core.tensor"):
            result = a * b

        assert result.shape == (1,)
        assert result == Tensor(1)
        assert any("undefined" in record.getMessage() for record in caplog.records)

    def test_transpose(self):
        t = Tensor.from_grid([[1, 2, 3], [4, 5, 6]])
        transposed = t.transpose()
        assert transposed.shape == (3, 2)
        assert transposed == Tensor.from_grid([[1, 4], [2, 5], [3, 6]])
        assert t.t() == transposed

    def test_transpose_twice_is_identity(self):
        for shape in [(2, 3), (4, 1), (1, 4), (5, 5)]:
            t = Tensor.from_numpy(np.random.uniform(-1, 1, shape))
            assert t.transpose().transpose() == t
            assert t.transpose().transpose().shape == t.shape

    def test_transpose_rank_one(self):
        t = Tensor(3)
        t.data[:] = [1, 2, 3]
        assert t.transpose().shape == (1, 3)

    def test_transpose_single_element_returns_itself(self):
        t = Tensor.scalar(2.0)
        assert t.transpose() is t

    def test_transpose_rejects_higher_rank(self):
        with pytest.raises(ShapeMismatchError):
            Tensor(2, 2, 2).transpose()


class TestVectorLayout:
    """Tests for reading one vector in another vector's shape"""

    def test_is_vector(self):
        assert Tensor(3).is_vector
        assert Tensor(3, 1).is_vector
        assert Tensor(1, 3).is_vector
        assert not Tensor(2, 2).is_vector
        assert not Tensor(3, 1, 1).is_vector

    def test_as_vector_like(self):
        flat = Tensor(3)
        flat.data[:] = [1, 2, 3]
        column = flat.as_vector_like(Tensor(3, 1))
        assert column.shape == (3, 1)
        assert column == Tensor.from_column([1, 2, 3])
        assert np.shares_memory(column.data, flat.data)
        assert Tensor.from_row([1, 2, 3]).as_vector_like(column) == column

    def test_same_shape_returns_itself(self):
        t = Tensor.from_column([1, 2])
        assert t.as_vector_like(Tensor(2, 1)) is t

    def test_rejects_mismatch(self):
        with pytest.raises(ShapeMismatchError):
            Tensor(2).as_vector_like(Tensor(3, 1))
        with pytest.raises(ShapeMismatchError):
            Tensor(4).as_vector_like(Tensor(2, 2))


class TestEquality:
    """Tests for exact and approximate equality"""

    def test_equality(self):
        values = [[1, 2, 3, 4], [5, 6, 7, 8], [9, 10, 11, 12], [13, 14, 15, 16]]
        a = Tensor.from_grid(values)
        b = Tensor.from_grid(values)
        assert a == b
        assert b == a
        assert a == a
        assert not (a != b)

    def test_equality_is_exact(self):
        """Test that a tiny difference breaks equality but not closeness"""
        a = Tensor.from_grid([[0.5, 1.0]])
        b = a.copy()
        b[0, 0] = 0.5 + 1e-6
        assert a != b
        assert a.allclose(b, 1e-4)
        assert not a.allclose(b, 1e-8)

    def test_length_mismatch(self):
        assert Tensor(2, 2) != Tensor(3, 1)
        assert not Tensor(2, 2).allclose(Tensor(3, 1))

    def test_equality_compares_buffers_not_shapes(self):
        assert Tensor(4, 1) == Tensor(1, 4)

    def test_non_tensor(self):
        assert Tensor.scalar(1.0) != 1.0
        assert Tensor.scalar(1.0) != "1.0"

    def test_unhashable(self):
        with pytest.raises(TypeError):
            hash(Tensor(1))


class TestRepresentation:
    def test_repr_and_str(self):
        t = Tensor.from_grid([[1, 2], [3, 4]])
        assert "Tensor" in repr(t)
        assert "shape=(2, 2)" in repr(t)
        assert "3." in str(t)

    def test_sum_and_fill(self):
        t = Tensor(2, 2)
        t.fill(1.5)
        assert t.sum() == 6.0
        assert t.dimension_size(1) == 2
