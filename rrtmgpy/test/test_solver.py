import numpy as np
import pytest

from rrtmgpy import (backends, solver, workarrays)
from rrtmgpy.atmosphere import AtmosphericState
from rrtmgpy.gas_concentrations import GasConcentrations
from rrtmgpy.optical_props import OpticalProps2str

from conftest import make_state


@pytest.fixture
def lw_solver(lw_gas_optics):
    return solver.RadiationSolverLongwave(lw_gas_optics, n_col_block=3)


@pytest.fixture
def sw_solver(sw_gas_optics):
    return solver.RadiationSolverShortwave(sw_gas_optics, n_col_block=3)


def solve_lw(gas_optics, state, **kwargs):
    lw_solver = solver.RadiationSolverLongwave(gas_optics, **kwargs)
    output = lw_solver.create_output(state.ncol, state.nlay, by_band=True,
                                     jacobian=True)

    return lw_solver.solve(state, sfc_emis=0.98, output=output)


def solve_sw(gas_optics, state, **kwargs):
    sw_solver = solver.RadiationSolverShortwave(gas_optics, **kwargs)
    output = sw_solver.create_output(state.ncol, state.nlay, by_band=True)
    mu0 = np.linspace(-0.2, 1., state.ncol)

    return sw_solver.solve(state, mu0, 0.1, 0.2, output)


class TestRadiationSolverLongwave:
    def test_solve(self, lw_solver, state):
        output = lw_solver.create_output(state.ncol, state.nlay)

        lw_solver.solve(state, sfc_emis=1., output=output)

        fluxes = output.fluxes
        assert not fluxes.top_at_1
        assert np.all(fluxes['flux_up'] > 0)
        # No downward flux at the top of the atmosphere.
        assert np.allclose(fluxes['flux_dn'][:, -1], 0.)
        assert np.all(fluxes['flux_dn'][:, :-1] > 0)
        assert np.allclose(fluxes['flux_net'],
                           fluxes['flux_up'] - fluxes['flux_dn'])

    @pytest.mark.parametrize('n_col_block', [1, 3, 7, 100])
    def test_block_size(self, lw_gas_optics, state, n_col_block):
        """Results do not depend on the block size."""
        reference = solve_lw(lw_gas_optics, state, n_col_block=2)
        output = solve_lw(lw_gas_optics, state, n_col_block=n_col_block)

        for name in output.fluxes.data_vars:
            assert np.allclose(output.fluxes[name],
                                   reference.fluxes[name]), name

    def test_thread_pool(self, lw_gas_optics, state):
        reference = solve_lw(lw_gas_optics, state, n_col_block=2)
        output = solve_lw(lw_gas_optics, state, n_col_block=2,
                          backend=backends.ThreadPoolBackend(max_workers=3))

        for name in output.fluxes.data_vars:
            assert np.allclose(output.fluxes[name],
                                   reference.fluxes[name]), name

    def test_columns_are_independent(self, lw_gas_optics, state):
        """Each column gives the same result as if solved alone."""
        output = solve_lw(lw_gas_optics, state, n_col_block=3)
        single = solve_lw(lw_gas_optics, state.subset(4, 5), n_col_block=3)

        assert np.allclose(single.fluxes['flux_up'][0],
                           output.fluxes['flux_up'][4])

    def test_by_band(self, lw_gas_optics, state):
        output = solve_lw(lw_gas_optics, state)

        assert np.allclose(output.fluxes['bnd_flux_up'].sum(axis=-1),
                           output.fluxes['flux_up'])

    def test_jacobian(self, lw_gas_optics, state_factory):
        """The Jacobian approximates the response to a warmer surface."""
        state = state_factory()
        warm = state_factory()
        warm['tsfc'][...] += 0.1

        output = solve_lw(lw_gas_optics, state)
        output_warm = solve_lw(lw_gas_optics, warm)

        delta = output_warm.fluxes['flux_up'] - output.fluxes['flux_up']
        assert np.allclose(delta, 0.1 * output.fluxes['flux_up_jac'],
                           rtol=1e-2)

    def test_store_optical_props_and_sources(self, lw_solver, state):
        output = lw_solver.create_output(state.ncol, state.nlay,
                                         optical_props=True, sources=True)

        lw_solver.solve(state, sfc_emis=1., output=output)

        assert np.all(output.optical_props['tau'] > 0)
        assert np.all(output.sources['sfc_source'] > 0)

    def test_external_optical_props(self, lw_solver, state):
        """Clouds reduce the outgoing longwave radiation."""
        clear = lw_solver.create_output(state.ncol, state.nlay)
        lw_solver.solve(state, sfc_emis=1., output=clear)

        clouds = OpticalProps2str.by_band(2).alloc(state.ncol, state.nlay)
        clouds['tau'][:, 3] = 5.
        cloudy = lw_solver.create_output(state.ncol, state.nlay)
        lw_solver.solve(state, sfc_emis=1., output=cloudy,
                        external_optical_props=clouds)

        assert np.all(cloudy.fluxes['flux_up'][:, -1]
                      < clear.fluxes['flux_up'][:, -1])

    def test_incoming_flux(self, lw_solver, state):
        output = lw_solver.create_output(state.ncol, state.nlay)
        inc_flux = np.full((state.ncol, lw_solver.gas_optics.ngpt), 2.5)

        lw_solver.solve(state, sfc_emis=1., output=output, inc_flux=inc_flux)

        assert np.allclose(output.fluxes['flux_dn'][:, -1], 10.)

    def test_top_at_1(self, lw_gas_optics, state):
        """Reversing the vertical ordering reverses the fluxes."""
        def flip(vmr):
            return vmr[..., ::-1] if vmr.ndim > 0 else vmr

        flipped = AtmosphericState(
            play=state['play'][:, ::-1],
            plev=state['plev'][:, ::-1],
            tlay=state['tlay'][:, ::-1],
            tsfc=state['tsfc'],
            tlev=state['tlev'][:, ::-1],
            gas_concs=GasConcentrations({
                name: flip(state.gas_concs.get_vmr(name))
                for name in state.gas_concs.get_gas_names()
            }),
        )

        output = solve_lw(lw_gas_optics, state)
        output_flipped = solve_lw(lw_gas_optics, flipped)

        assert output_flipped.fluxes.top_at_1
        assert np.allclose(output_flipped.fluxes['flux_up'],
                           output.fluxes['flux_up'][:, ::-1])
        assert np.allclose(output_flipped.fluxes['flux_dn'],
                           output.fluxes['flux_dn'][:, ::-1])

    def test_wrong_output_size(self, lw_solver, state):
        output = lw_solver.create_output(state.ncol + 1, state.nlay)

        with pytest.raises(ValueError):
            lw_solver.solve(state, sfc_emis=1., output=output)

    def test_wrong_precision(self, lw_solver, state_factory):
        state = state_factory(dtype=np.float32)
        output = lw_solver.create_output(state.ncol, state.nlay)

        with pytest.raises(TypeError):
            lw_solver.solve(state, sfc_emis=1., output=output)

    def test_shortwave_tables(self, sw_gas_optics):
        with pytest.raises(ValueError):
            solver.RadiationSolverLongwave(sw_gas_optics)

    @pytest.mark.parametrize('kwargs', [{'n_col_block': 0},
                                        {'n_gauss_angles': 5}])
    def test_invalid_arguments(self, lw_gas_optics, kwargs):
        with pytest.raises(ValueError):
            solver.RadiationSolverLongwave(lw_gas_optics, **kwargs)

    def test_pool_reuse(self, lw_solver, state):
        """Arenas are reused across calls of the same problem size."""
        output = lw_solver.create_output(state.ncol, state.nlay)

        for _ in range(3):
            lw_solver.solve(state, sfc_emis=1., output=output)

        assert len(lw_solver._pools) == 1
        assert list(lw_solver._pools.values())[0].size == 1

    def test_reused_arena_gives_identical_fluxes(self, lw_solver, state):
        """No state is left behind in an arena between two calls."""
        results = []
        for ncol in (state.ncol, 2, state.ncol):
            block = state.subset(0, ncol)
            output = lw_solver.create_output(ncol, state.nlay)
            lw_solver.solve(block, sfc_emis=1., output=output)
            results.append(output.fluxes)

        for name in ('flux_up', 'flux_dn'):
            assert np.array_equal(results[0][name], results[2][name])
            assert np.allclose(results[1][name], results[0][name][:2])

    def test_pool_per_block_size(self, lw_solver, state):
        """Problems with fewer columns than a block share one pool."""
        for ncol in (1, 2, 3):
            output = lw_solver.create_output(ncol, state.nlay)
            lw_solver.solve(state.subset(0, ncol), sfc_emis=1.,
                            output=output)

        assert len(lw_solver._pools) == 1


class TestRadiationSolverShortwave:
    def test_solve(self, sw_solver, state):
        output = sw_solver.create_output(state.ncol, state.nlay)
        mu0 = np.full(state.ncol, 0.5)

        sw_solver.solve(state, mu0, 0.1, 0.1, output)

        fluxes = output.fluxes
        toa = 0.5 * sw_solver.gas_optics.get_tsi()
        assert np.allclose(fluxes['flux_dn'][:, -1], toa)
        assert np.allclose(fluxes['flux_dn_dir'][:, -1], toa)
        assert np.all(fluxes['flux_up'] > 0)
        assert np.all(fluxes['flux_dn_dir'] <= fluxes['flux_dn'] + 1e-9)

    def test_night(self, sw_solver, state):
        output = sw_solver.create_output(state.ncol, state.nlay)
        mu0 = np.zeros(state.ncol)
        mu0[::2] = 1.

        sw_solver.solve(state, mu0, 0.1, 0.1, output)

        assert np.all(output.fluxes['flux_dn'][1::2] == 0)
        assert np.all(output.fluxes['flux_dn'][::2] > 0)

    @pytest.mark.parametrize('n_col_block', [1, 3, 7])
    def test_block_size(self, sw_gas_optics, state, n_col_block):
        reference = solve_sw(sw_gas_optics, state, n_col_block=2)
        output = solve_sw(sw_gas_optics, state, n_col_block=n_col_block)

        for name in output.fluxes.data_vars:
            assert np.allclose(output.fluxes[name],
                                   reference.fluxes[name]), name

    def test_thread_pool(self, sw_gas_optics, state):
        reference = solve_sw(sw_gas_optics, state, n_col_block=2)
        output = solve_sw(sw_gas_optics, state, n_col_block=2,
                          backend=backends.ThreadPoolBackend())

        for name in output.fluxes.data_vars:
            assert np.allclose(output.fluxes[name],
                                   reference.fluxes[name]), name

    def test_tsi_scaling(self, sw_solver, state):
        output = sw_solver.create_output(state.ncol, state.nlay)
        mu0 = np.ones(state.ncol)
        scaling = np.linspace(0.5, 1.5, state.ncol)

        sw_solver.solve(state, mu0, 0.1, 0.1, output, tsi_scaling=scaling)

        assert np.allclose(output.fluxes['flux_dn'][:, -1],
                           scaling * sw_solver.gas_optics.get_tsi())

    def test_store_optical_props(self, sw_solver, state):
        output = sw_solver.create_output(state.ncol, state.nlay,
                                         optical_props=True)

        sw_solver.solve(state, np.ones(state.ncol), 0.1, 0.1, output)

        assert np.all(output.optical_props['ssa'] > 0)

    def test_longwave_tables(self, lw_gas_optics):
        with pytest.raises(ValueError):
            solver.RadiationSolverShortwave(lw_gas_optics)

    def test_output_without_sources(self, sw_solver, state):
        fluxes = sw_solver.create_output(state.ncol, state.nlay).fluxes

        with pytest.raises(ValueError):
            solver.ShortwaveOutput(fluxes, sources=object())


class TestRadiationOutput:
    def test_subset(self, lw_solver, state):
        output = lw_solver.create_output(state.ncol, state.nlay,
                                         optical_props=True)

        subset = output.subset(2, 5)

        assert isinstance(subset, solver.LongwaveOutput)
        assert subset.ncol == 3
        assert subset.sources is None
        assert subset.optical_props.ncol == 3

    def test_components(self, lw_solver, state):
        output = lw_solver.create_output(state.ncol, state.nlay, sources=True)

        assert [name for name, _ in output.components()] == [
            'fluxes', 'sources']


class TestBackends:
    @pytest.fixture
    def pool(self):
        return workarrays.WorkArrayPool(lambda: workarrays.WorkArrays(4))

    @pytest.mark.parametrize('backend', [backends.SerialBackend(),
                                         backends.ThreadPoolBackend(2)])
    def test_run(self, backend, pool):
        """Every block is processed exactly once."""
        visited = np.zeros(10, dtype=int)

        def task(start, stop, work):
            assert work.ncol == stop - start
            visited[start:stop] += 1

        backend.run(task, [(0, 4), (4, 8), (8, 10)], pool)

        assert np.all(visited == 1)

    def test_error_is_raised(self, pool):
        def task(start, stop, work):
            raise RuntimeError('Block failed.')

        with pytest.raises(RuntimeError):
            backends.ThreadPoolBackend(2).run(task, [(0, 4), (4, 8)], pool)

    def test_invalid_workers(self):
        with pytest.raises(ValueError):
            backends.ThreadPoolBackend(max_workers=0)


class TestWorkArrays:
    def test_view(self):
        work = workarrays.WorkArrays(4)
        array = work.allocate('tau', (3, 5, 4), col_axis=2)

        view = work.view(2)
        view['tau'][...] = 1.

        assert view['tau'].shape == (3, 5, 2)
        assert np.all(array[..., :2] == 1.)
        assert np.all(array[..., 2:] == 0.)
        assert work.view(4) is work

    @pytest.mark.parametrize('ncol', [0, 5])
    def test_invalid_view(self, ncol):
        with pytest.raises(ValueError):
            workarrays.WorkArrays(4).view(ncol)

    def test_allocate_wrong_size(self):
        with pytest.raises(ValueError):
            workarrays.WorkArrays(4).allocate('tau', (3, 5), col_axis=0)

    def test_component(self, lw_gas_optics):
        work = workarrays.WorkArrays(4)
        work.add_component('sources', lw_gas_optics.create_sources(4, 3))
        work['sources'].set('sfc_source', 1.)

        view = work.view(1)
        view.reset()

        assert np.all(work['sources']['sfc_source'][0] == 0.)
        assert np.all(work['sources']['sfc_source'][1:] == 1.)

    def test_pool(self):
        pool = workarrays.WorkArrayPool(lambda: workarrays.WorkArrays(1))

        with pool.acquire() as first:
            with pool.acquire() as second:
                assert first is not second

        with pool.acquire() as third:
            assert third in (first, second)

        assert pool.size == 2


def test_make_state_is_bottom_up():
    assert not make_state(ncol=1, nlay=3).top_at_1
